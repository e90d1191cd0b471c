from compliance.services.evaluator.context import DependencyRule
from compliance.services.evaluator.engine import Evaluator, evaluate_rules
from compliance.services.evaluator.loader import compile_rules, load_rules, load_rules_from_string
from compliance.services.evaluator.rule_set import RuleSet
from compliance.services.evaluator.rules import Rule, RuleTrigger
from compliance.services.evaluator.walker import DependencyTreeWalker

__all__ = [
    "DependencyRule",
    "DependencyTreeWalker",
    "Evaluator",
    "Rule",
    "RuleSet",
    "RuleTrigger",
    "compile_rules",
    "evaluate_rules",
    "load_rules",
    "load_rules_from_string",
]
