from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from lxml import etree

from . import dom
from .dialects import Dialect, detect_format, dialect_for
from .errors import DuplicateIdError, FormatError, InvalidMasterError, UnsupportedOperationError
from .logger import get_logger
from .master import MasterLink, mismatch_warning
from .message import EMPTY_MESSAGE, text_message
from .message_parser import looks_like_icu_message
from .settings import BundleSettings, get_settings
from .unit import TargetState, TranslationUnit

logger = get_logger(__name__)


@dataclass(frozen=True)
class UnitCounts:
    missing_id: int
    untranslated: int
    reviewed: int


class TranslationDocument:
    """
    A translation bundle file of any supported dialect.

    Units are kept in document order. The id index and the counters are
    derived from the unit list, cached, and dropped by every mutation.
    Instances are not thread safe.
    """

    def __init__(self, dialect: Dialect, xml_string: str, path: Optional[str] = None,
                 settings: Optional[BundleSettings] = None):
        self.dialect = dialect
        self.path = path
        settings = settings or get_settings()
        self.new_unit_target_prefix = settings.new_unit_target_prefix
        self.new_unit_target_suffix = settings.new_unit_target_suffix
        self.master_link: Optional[MasterLink] = None
        self._warnings: List[str] = []
        self._id_index: Optional[Dict[str, TranslationUnit]] = None
        self._counts: Optional[UnitCounts] = None

        try:
            self._tree, self._declaration = dom.parse_document(xml_string)
        except etree.XMLSyntaxError as e:
            raise FormatError(f'File "{path}" is not well formed XML: {e}') from e
        self.root = self._tree.getroot()

        markers = dom.elements_by_tag(self.root, dialect.root_tag)
        if len(markers) != 1:
            raise FormatError(
                f'File "{path}" seems to be no {dialect.format} file '
                f'(should contain exactly one {dialect.root_tag} element, found {len(markers)})')
        dialect.check_structure(self)

        self._units = self._read_units()
        logger.debug(f"Parsed {dialect.file_type} file {path}: {len(self._units)} units")

    @classmethod
    def from_content(cls, format_tag: str, xml_string: str, path: Optional[str] = None,
                     master: Union[str, "TranslationDocument", None] = None,
                     master_path: Optional[str] = None,
                     settings: Optional[BundleSettings] = None) -> "TranslationDocument":
        """
        Reads a document of a known format ('xmb', 'xtb', 'xlf').
        master is the content (or the parsed document) of the master file,
        only meaningful for xtb.
        """
        document = cls(dialect_for(format_tag), xml_string, path, settings)
        if master is not None:
            document.attach_master(master, master_path)
        return document

    @classmethod
    def from_unknown_format_content(cls, xml_string: str, path: Optional[str] = None,
                                    master: Union[str, "TranslationDocument", None] = None,
                                    master_path: Optional[str] = None,
                                    settings: Optional[BundleSettings] = None) -> "TranslationDocument":
        """Like from_content, the format is taken from the root element."""
        try:
            tree, _ = dom.parse_document(xml_string)
        except etree.XMLSyntaxError as e:
            raise FormatError(f'File "{path}" is not well formed XML: {e}') from e
        format_tag = detect_format(tree.getroot())
        if format_tag is None:
            raise FormatError(f'Could not identify file format of "{path}"')
        return cls.from_content(format_tag, xml_string, path, master, master_path, settings)

    def _read_units(self) -> List[TranslationUnit]:
        units = []
        seen = set()
        for element in self.dialect.units_of(self.root):
            unit_id = self.dialect.unit_id(element)
            if not unit_id:
                self._warn(f'oops, {self.dialect.unit_tag} without "id" found, please check file {self.path}')
            elif unit_id in seen:
                self._warn(f'duplicate id "{unit_id}" found, please check file {self.path}')
            else:
                seen.add(unit_id)
            units.append(TranslationUnit(element, unit_id, self))
        return units

    def _warn(self, message: str):
        logger.warning(message)
        self._warnings.append(message)

    # --- Master ---

    def attach_master(self, master: Union[str, "TranslationDocument"], master_path: Optional[str] = None):
        """
        Links the master that holds the original texts.
        Raises InvalidMasterError if it is not a file of the companion format.
        A differing number of units only produces a warning.
        """
        companion = self.dialect.companion_format
        if companion is None:
            raise UnsupportedOperationError(f"{self.dialect.file_type} files do not use a master file")

        if isinstance(master, TranslationDocument):
            if master.format() != companion:
                raise InvalidMasterError(
                    f'File "{master.path}" seems to be no {companion} file. '
                    f'An {self.format()} file needs {companion} as master file.')
            master_document = master
        else:
            try:
                master_document = TranslationDocument.from_content(companion, master, master_path)
            except FormatError as e:
                raise InvalidMasterError(
                    f'File "{master_path}" seems to be no {companion} file. '
                    f'An {self.format()} file needs {companion} as master file.') from e

        self.master_link = MasterLink(master_document)
        number_in_master = self.master_link.number_of_trans_units()
        my_number = self.number_of_trans_units()
        if number_in_master != my_number:
            self._warn(mismatch_warning(number_in_master, my_number))
        self.invalidate_caches()

    # --- Queries ---

    def format(self) -> str:
        return self.dialect.format

    def file_type(self) -> str:
        return self.dialect.file_type

    def warnings(self) -> List[str]:
        return list(self._warnings)

    def source_language(self) -> Optional[str]:
        return self.dialect.source_language(self)

    def set_source_language(self, language: str):
        self.dialect.set_source_language(self, language)
        self.invalidate_caches()

    def target_language(self) -> Optional[str]:
        return self.dialect.target_language(self)

    def set_target_language(self, language: str):
        self.dialect.set_target_language(self, language)
        self.invalidate_caches()

    def invalidate_caches(self):
        self._id_index = None
        self._counts = None

    def _unit_counts(self) -> UnitCounts:
        if self._counts is None:
            missing = untranslated = reviewed = 0
            for unit in self._units:
                if not unit.id:
                    missing += 1
                state = unit.target_state()
                if state == TargetState.NEW:
                    untranslated += 1
                elif state == TargetState.FINAL:
                    reviewed += 1
            self._counts = UnitCounts(missing, untranslated, reviewed)
        return self._counts

    def number_of_trans_units(self) -> int:
        return len(self._units)

    def number_of_trans_units_with_missing_id(self) -> int:
        return self._unit_counts().missing_id

    def number_of_untranslated_trans_units(self) -> int:
        return self._unit_counts().untranslated

    def number_of_reviewed_trans_units(self) -> int:
        return self._unit_counts().reviewed

    def trans_unit_with_id(self, unit_id: Optional[str]) -> Optional[TranslationUnit]:
        if self._id_index is None:
            index = {}
            for unit in self._units:
                if unit.id and unit.id not in index:
                    index[unit.id] = unit
            self._id_index = index
        return self._id_index.get(unit_id)

    def for_each_trans_unit(self, visitor: Callable[[TranslationUnit], None]):
        """Visits all units in document order. Do not add or remove units meanwhile."""
        for unit in self._units:
            visitor(unit)

    def __iter__(self) -> Iterator[TranslationUnit]:
        return iter(self._units)

    def __len__(self):
        return len(self._units)

    def edited_content(self) -> str:
        """The document with all changes, as XML text."""
        return dom.serialize_document(self._tree, self._declaration)

    # --- Mutators ---

    def _decorate(self, fragment: str) -> str:
        """Wraps a draft fragment into the new-unit prefix and suffix."""
        serialize = self.dialect.message_parser.serialize
        return (serialize(text_message(self.new_unit_target_prefix)) + fragment
                + serialize(text_message(self.new_unit_target_suffix)))

    def _seed_target(self, source_fragment: str, is_icu: bool, is_default_language: bool,
                     copy_content: bool) -> Tuple[str, TargetState]:
        if is_default_language:
            return source_fragment, TargetState.FINAL
        if not copy_content:
            return "", TargetState.NEW
        if is_icu:
            return source_fragment, TargetState.NEW
        return self._decorate(source_fragment), TargetState.NEW

    def _copies_source_verbatim(self, unit: TranslationUnit) -> bool:
        # Inline-source units of the same dialect hold a fragment this document can take as is
        return unit.document.dialect is self.dialect and self.dialect.companion_format is None

    def import_new_trans_unit(self, unit: TranslationUnit, is_default_language: bool,
                              copy_content: bool) -> TranslationUnit:
        """
        Adds a unit that stems from another file (used when merging).

        The target gets the source content of the unit: verbatim and FINAL
        for the default language, else as NEW draft (decorated with the
        new-unit prefix/suffix) when copy_content, else empty and NEW.
        Content of a unit in the same dialect is copied textually, content
        of another dialect is normalized and written in this dialect.
        Raises DuplicateIdError if the id is already present.
        """
        if self.trans_unit_with_id(unit.id) is not None:
            raise DuplicateIdError(unit.id)

        if self._copies_source_verbatim(unit):
            source_fragment = unit.source_content() or ""
            is_icu = looks_like_icu_message(source_fragment)
        else:
            source_message = unit.source_content_normalized() or EMPTY_MESSAGE
            source_fragment = self.dialect.message_parser.serialize(source_message)
            is_icu = source_message.is_icu_message()
        target_fragment, state = self._seed_target(source_fragment, is_icu, is_default_language, copy_content)
        element = self.dialect.create_unit_element(self, unit, source_fragment, target_fragment, state)

        new_unit = TranslationUnit(element, unit.id, self)
        new_unit.imported_from = unit
        if is_default_language and not self.dialect.supports_target_state:
            new_unit.import_state = state
        self._units.append(new_unit)
        self.invalidate_caches()
        logger.debug(f"Imported unit {unit.id} into {self.path} (state {state.value})")
        return new_unit

    def remove_trans_unit_with_id(self, unit_id: str):
        """Removes the unit, unknown ids are ignored."""
        unit = self.trans_unit_with_id(unit_id)
        if unit is None:
            logger.debug(f"No unit with id {unit_id} to remove in {self.path}")
            return
        dom.remove_element(unit.element)
        self._units.remove(unit)
        self.invalidate_caches()

    def create_translation_file_for_lang(self, lang: str, filename: Optional[str],
                                         is_default_language: bool,
                                         copy_content: bool) -> "TranslationDocument":
        """
        Creates the translation file of this file for a language.
        Inline-source formats are copied; for xmb the translation is an xtb
        file with this file as master. xtb files are translations already.
        """
        translation_format = self.dialect.translation_format
        if translation_format is None:
            raise UnsupportedOperationError(
                f'File "{filename}", {self.format()} files are not translatable, they are already translations')

        if translation_format == self.format():
            translation = TranslationDocument(self.dialect, self.edited_content(), filename)
            translation.new_unit_target_prefix = self.new_unit_target_prefix
            translation.new_unit_target_suffix = self.new_unit_target_suffix
            translation.set_target_language(lang)
            for unit in translation:
                source_fragment = unit.source_content() or ""
                fragment, state = translation._seed_target(
                    source_fragment, looks_like_icu_message(source_fragment), is_default_language, copy_content)
                translation.dialect.write_target(unit, fragment)
                translation.dialect.write_state(unit, state)
            translation.invalidate_caches()
            return translation

        dialect = dialect_for(translation_format)
        translation = TranslationDocument(dialect, dialect.skeleton(lang), filename)
        translation.new_unit_target_prefix = self.new_unit_target_prefix
        translation.new_unit_target_suffix = self.new_unit_target_suffix
        for unit in self._units:
            if unit.id and translation.trans_unit_with_id(unit.id) is None:
                translation.import_new_trans_unit(unit, is_default_language, copy_content)
        translation.attach_master(self)
        return translation
