"""Pattern-based secret redaction for user-visible text."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class RedactionRule:
    """Replace every match of ``pattern`` with ``placeholder``."""

    name: str
    pattern: re.Pattern
    placeholder: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.placeholder, text)


DEFAULT_RULES: tuple[RedactionRule, ...] = (
    RedactionRule(
        "github_token",
        re.compile(r"ghp_[a-zA-Z0-9]{36}"),
        "[GitHub token redacted]",
    ),
    RedactionRule(
        "anthropic_key",
        re.compile(r"sk-ant-[a-zA-Z0-9_-]{95,}"),
        "[Anthropic key redacted]",
    ),
    RedactionRule(
        "slack_bot_token",
        re.compile(r"xoxb-[0-9-]{30,}"),
        "[Slack bot token redacted]",
    ),
)


class Redactor:
    """Applies an ordered list of redaction rules to free text.

    Rules run one after another over the whole string. Placeholders must not
    match any rule, which keeps ``redact(redact(x)) == redact(x)``.
    """

    def __init__(self, rules=DEFAULT_RULES, extra_rules=()):
        self.rules = tuple(rules) + tuple(extra_rules)
        for rule in self.rules:
            for other in self.rules:
                if other.pattern.search(rule.placeholder):
                    raise ValueError(
                        f"Placeholder of rule '{rule.name}' matches rule '{other.name}'"
                    )

    def redact(self, text: str) -> str:
        for rule in self.rules:
            text = rule.apply(text)
        return text


_default_redactor = Redactor()


def redact(text: str) -> str:
    """Redact ``text`` with the default rule set."""
    return _default_redactor.redact(text)
