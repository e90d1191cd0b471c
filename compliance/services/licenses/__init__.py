from compliance.services.licenses.views import ResolvedLicense, resolve_licenses

__all__ = ["ResolvedLicense", "resolve_licenses"]
