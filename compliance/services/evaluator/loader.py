"""
Rule loading

Compiles declarative rule definitions (YAML or already parsed mappings) into Rule
objects. Every problem in a definition raises InvalidRuleError here, before any
evaluation starts.

Example:

    rules:
      - name: NO_STATIC_COPYLEFT
        severity: ERROR
        license_view: CONCLUDED_OR_REST
        message: "{package} links {license} statically."
        matcher:
          all:
            - is_statically_linked
            - is_license: [GPL-2.0-only, GPL-3.0-only]
            - not: is_excluded
"""

import inspect
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml
from pydantic import ValidationError

from compliance.core.errors import InvalidRuleError
from compliance.schemas.rules import RuleDefinition, RulesFile
from compliance.services.evaluator import registry
from compliance.services.evaluator.matchers import AllOf, AnyOf, Not, RuleMatcher
from compliance.services.evaluator.rules import Rule

logger = logging.getLogger(__name__)


def _split_keywords(factory, args: Mapping[str, Any]) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Split mapping arguments for ``factory``.

    A key named like the factory's ``*args`` parameter is passed positionally, so
    ``contains_license: {licenses: [MIT], view: ALL}`` works like the list form.
    """
    keywords = dict(args)
    for param in inspect.signature(factory).parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL and param.name in keywords:
            values = keywords.pop(param.name)
            return (list(values) if isinstance(values, (list, tuple)) else [values]), keywords
    return [], keywords


def _call_atom(name: str, args: Any, rule_name: str) -> RuleMatcher:
    factory = registry.get_atom(name)
    if factory is None:
        raise InvalidRuleError(
            f"unknown atom '{name}', known atoms: {', '.join(registry.get_all_atom_names())}",
            rule_name,
        )

    if registry.takes_matcher(name):
        args = [compile_matcher(args, rule_name)]

    try:
        if args is None:
            return factory()
        if isinstance(args, Mapping):
            positional, keywords = _split_keywords(factory, args)
            return factory(*positional, **keywords)
        if isinstance(args, (list, tuple)):
            return factory(*args)
        return factory(args)
    except (TypeError, ValueError, re.error) as e:
        raise InvalidRuleError(f"invalid arguments for '{name}': {e}", rule_name) from e


def compile_matcher(node: Any, rule_name: str = "") -> RuleMatcher:
    """
    Compile a matcher node.

    A node is an atom name without arguments (``is_excluded``) or a single-key
    mapping: ``all`` / ``any`` with a list of nodes, ``not`` with one node, or an
    atom name with its arguments.
    """
    if isinstance(node, RuleMatcher):
        return node
    if isinstance(node, str):
        return _call_atom(node, None, rule_name)
    if not isinstance(node, Mapping) or len(node) != 1:
        raise InvalidRuleError(f"matcher node must be a name or a single-key mapping, got {node!r}", rule_name)

    key, value = next(iter(node.items()))

    if key in ("all", "any"):
        if not isinstance(value, (list, tuple)) or not value:
            raise InvalidRuleError(f"'{key}' needs a non-empty list of matchers", rule_name)
        children = [compile_matcher(child, rule_name) for child in value]
        return AllOf(*children) if key == "all" else AnyOf(*children)

    if key == "not":
        return Not(compile_matcher(value, rule_name))

    return _call_atom(key, value, rule_name)


def compile_rule(definition: Union[RuleDefinition, Mapping[str, Any]]) -> Rule:
    if not isinstance(definition, RuleDefinition):
        name = definition.get("name", "") if isinstance(definition, Mapping) else ""
        try:
            definition = RuleDefinition.model_validate(definition)
        except ValidationError as e:
            raise InvalidRuleError(str(e), name) from e

    return Rule(
        name=definition.name,
        matcher=compile_matcher(definition.matcher, definition.name),
        message=definition.message,
        severity=definition.severity,
        how_to_fix=definition.how_to_fix,
        trigger=definition.trigger,
        license_view=definition.license_view,
    )


def compile_rules(data: Union[Mapping[str, Any], List[Any]]) -> List[Rule]:
    """
    Compile a list of rule definitions, or a mapping with a ``rules`` list.

    Raises:
        InvalidRuleError: on the first invalid definition or on duplicate rule names.
    """
    if isinstance(data, Mapping):
        try:
            definitions = RulesFile.model_validate(data).rules
        except ValidationError as e:
            raise InvalidRuleError(str(e)) from e
    elif isinstance(data, list):
        definitions = data
    else:
        raise InvalidRuleError(f"rule definitions must be a list or a mapping, got {type(data).__name__}")

    rules: List[Rule] = []
    seen: Dict[str, int] = {}
    for index, definition in enumerate(definitions):
        rule = compile_rule(definition)
        if rule.name in seen:
            raise InvalidRuleError(f"duplicate rule name (also defined at position {seen[rule.name]})", rule.name)
        seen[rule.name] = index
        rules.append(rule)

    logger.info(f"Loaded {len(rules)} rules")
    return rules


def load_rules(path: Union[str, Path]) -> List[Rule]:
    """Load rules from a YAML file."""
    return load_rules_from_string(Path(path).read_text(encoding="utf-8"))


def load_rules_from_string(text: str) -> List[Rule]:
    """Load rules from a YAML document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidRuleError(f"rules are not valid YAML: {e}") from e

    if data is None:
        return []
    return compile_rules(data)
