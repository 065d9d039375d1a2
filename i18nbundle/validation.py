from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .message import NormalizedMessage


@dataclass
class ValidationIssue:
    type: str  # 'placeholderRemoved', 'placeholderAdded', 'icuMessageRefRemoved', ...
    severity: str  # 'error', 'warning'
    message: str
    details: Any = None


@dataclass
class ValidationResult:
    status: str  # 'ok', 'warning', 'error'
    issues: List[ValidationIssue] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    unknown: List[str] = field(default_factory=list)


class MessageValidator:
    """
    Compares a translation with the message it translates.

    Errors: placeholders or ICU references that were dropped or invented.
    Warnings: HTML tags that were dropped or added.
    """

    def check(self, source: Optional[NormalizedMessage],
              translation: NormalizedMessage) -> ValidationResult:
        issues: List[ValidationIssue] = []
        missing: List[str] = []
        unknown: List[str] = []

        if source is None:
            return ValidationResult(status="ok")

        # A. Placeholder integrity (Core Check)
        src_ph = set(source.placeholder_indices())
        tgt_ph = set(translation.placeholder_indices())
        removed = sorted(src_ph - tgt_ph)
        added = sorted(tgt_ph - src_ph)
        if removed:
            tokens = ["{{%d}}" % i for i in removed]
            missing.extend(tokens)
            issues.append(ValidationIssue(
                type="placeholderRemoved",
                severity="error",
                message=f"removed placeholder {', '.join(tokens)} from original message",
                details=removed,
            ))
        if added:
            tokens = ["{{%d}}" % i for i in added]
            unknown.extend(tokens)
            issues.append(ValidationIssue(
                type="placeholderAdded",
                severity="error",
                message=f"added placeholder {', '.join(tokens)}, which is not in original message",
                details=added,
            ))

        # B. ICU references
        src_icu = set(source.icu_message_ref_indices())
        tgt_icu = set(translation.icu_message_ref_indices())
        removed_icu = sorted(src_icu - tgt_icu)
        added_icu = sorted(tgt_icu - src_icu)
        if removed_icu:
            tokens = [f"<ICU-Message-Ref_{i}/>" for i in removed_icu]
            missing.extend(tokens)
            issues.append(ValidationIssue(
                type="icuMessageRefRemoved",
                severity="error",
                message=f"removed ICU message reference {', '.join(tokens)} from original message",
                details=removed_icu,
            ))
        if added_icu:
            tokens = [f"<ICU-Message-Ref_{i}/>" for i in added_icu]
            unknown.extend(tokens)
            issues.append(ValidationIssue(
                type="icuMessageRefAdded",
                severity="error",
                message=f"added ICU message reference {', '.join(tokens)}, which is not in original message",
                details=added_icu,
            ))

        # C. Tags only produce warnings, translators may restructure markup
        src_tags = Counter(source.tag_names())
        tgt_tags = Counter(translation.tag_names())
        tags_removed = sorted((src_tags - tgt_tags).elements())
        tags_added = sorted((tgt_tags - src_tags).elements())
        if tags_removed:
            issues.append(ValidationIssue(
                type="tagRemoved",
                severity="warning",
                message=f"removed tag <{'>, <'.join(tags_removed)}> from original message",
                details=tags_removed,
            ))
        if tags_added:
            issues.append(ValidationIssue(
                type="tagAdded",
                severity="warning",
                message=f"added tag <{'>, <'.join(tags_added)}>, which is not in original message",
                details=tags_added,
            ))

        if missing or unknown:
            status = "error"
        elif issues:
            status = "warning"
        else:
            status = "ok"
        return ValidationResult(status=status, issues=issues, missing=missing, unknown=unknown)
