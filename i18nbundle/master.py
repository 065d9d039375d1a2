"""
Linkage between a translation-only document and its master.

The master supplies what the translation file does not store itself:
the original text, its language and (by comparison) the review state.
The link is one-way and read-only; the master never learns about it.
"""
from typing import Optional

from .unit import TargetState, TranslationUnit


class MasterLink:
    def __init__(self, master):
        self._master = master

    @property
    def master(self):
        return self._master

    def lookup(self, unit_id: Optional[str]) -> Optional[TranslationUnit]:
        if not unit_id:
            return None
        return self._master.trans_unit_with_id(unit_id)

    def number_of_trans_units(self) -> int:
        return self._master.number_of_trans_units()

    def source_language(self) -> Optional[str]:
        return self._master.source_language()


def mismatch_warning(number_in_master: int, number_in_file: int) -> str:
    return (f"{number_in_master} trans units found in master, but this file has {number_in_file}. "
            f"Check if it is the correct master")


def counterpart_of(unit: TranslationUnit) -> Optional[TranslationUnit]:
    """The unit holding the original text: master first, then the import origin."""
    link = unit.document.master_link
    if link is not None:
        found = link.lookup(unit.id)
        if found is not None:
            return found
    return unit.imported_from


def is_default_language_document(document) -> bool:
    """True if the translation is in the language of its master."""
    source, target = document.source_language(), document.target_language()
    return bool(source and target) and source.lower() == target.lower()


def is_untouched_copy(unit: TranslationUnit, counterpart: TranslationUnit) -> bool:
    """True if the target is the master text, as copied by import (decoration included)."""
    source = counterpart.source_content_normalized()
    if source is None:
        return False
    source_display = source.as_display_string()
    target_display = unit.target_content_normalized().as_display_string()
    if target_display == source_display:
        return True
    document = unit.document
    decorated = document.new_unit_target_prefix + source_display + document.new_unit_target_suffix
    return not source.is_icu_message() and target_display == decorated


def derive_state(unit: TranslationUnit) -> TargetState:
    """
    State of a unit in a dialect without state notation, taken from the
    file content and the master only so that it survives save and reload.

    No known original or an empty target: NEW. A target that still is the
    copied master text: NEW, unless the file is in the master's language.
    Any other target: FINAL. A unit imported for the default language is
    FINAL even when the languages are unknown. TRANSLATED is never derived:
    the file cannot tell a fresh translation from a reviewed one.
    """
    if unit.import_state is not None:
        return unit.import_state
    counterpart = counterpart_of(unit)
    if counterpart is None or not unit.target_content():
        return TargetState.NEW
    if is_default_language_document(unit.document):
        return TargetState.FINAL
    if is_untouched_copy(unit, counterpart):
        return TargetState.NEW
    return TargetState.FINAL
