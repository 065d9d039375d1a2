import os
import unittest

from i18nbundle import TargetState, TranslationDocument
from i18nbundle.dialects import dialect_for
from i18nbundle.errors import (
    DuplicateIdError, FormatError, PlaceholderMismatchError, UnsupportedOperationError,
)
from i18nbundle.settings import BundleSettings
from i18nbundle.source_reference import SourceReference

TESTDATA = os.path.join(os.path.dirname(__file__), "testdata")
SRC = "S:/experimente/sampleapp41/src/app/app.component.ts"


def read_testdata(name):
    with open(os.path.join(TESTDATA, name), "r", encoding="utf-8") as f:
        return f.read()


class TestXtbDocument(unittest.TestCase):
    XTB = "ngExtractedMaster1.en.xtb"
    MASTER = "ngExtractedMaster1.de.xmb"

    def setUp(self):
        self.content = read_testdata(self.XTB)
        self.master_content = read_testdata(self.MASTER)
        self.settings = BundleSettings()
        self.doc = TranslationDocument.from_content(
            "xtb", self.content, self.XTB, self.master_content, self.MASTER, settings=self.settings)

    def test_format(self):
        self.assertEqual(self.doc.format(), "xtb")
        self.assertEqual(self.doc.file_type(), "XTB")

    def test_counters(self):
        self.assertEqual(self.doc.number_of_trans_units(), 11)
        self.assertEqual(len(self.doc), 11)
        self.assertEqual(self.doc.number_of_trans_units_with_missing_id(), 1)
        # the empty translation and the one without id
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 2)
        self.assertEqual(self.doc.number_of_reviewed_trans_units(), 9)

    def test_warnings(self):
        warnings = self.doc.warnings()
        self.assertEqual(len(warnings), 1)
        self.assertIn('without "id"', warnings[0])

    def test_master_mismatch_warning(self):
        doc = TranslationDocument.from_content(
            "xtb", self.content, self.XTB, read_testdata("ngExtractedMaster1.xmb"), "ngExtractedMaster1.xmb")
        self.assertTrue(any("Check if it is the correct master" in w for w in doc.warnings()))
        self.assertTrue(any(w.startswith("12 trans units found in master") for w in doc.warnings()))

    def test_languages(self):
        self.assertEqual(self.doc.target_language(), "en")
        self.assertEqual(self.doc.source_language(), "de")
        self.doc.set_target_language("fr")
        self.assertEqual(self.doc.target_language(), "fr")
        self.assertIn('<translationbundle lang="fr">', self.doc.edited_content())

    def test_source_language_without_master(self):
        doc = TranslationDocument.from_content("xtb", self.content, self.XTB)
        self.assertIsNone(doc.source_language())
        self.assertIsNone(doc.master_link)

    def test_unit_content(self):
        unit = self.doc.trans_unit_with_id("9030312858648510700")
        self.assertIn('<ph name="INTERPOLATION"><ex>INTERPOLATION</ex></ph>', unit.source_content())
        self.assertEqual(unit.source_content_normalized().as_display_string(),
                         "Eintrag {{0}} von {{1}} hinzugefügt.")
        self.assertEqual(unit.target_content(),
                         'Entry <ph name="INTERPOLATION"/> of <ph name="INTERPOLATION_1"/> added.')
        self.assertEqual(unit.target_content_normalized().as_display_string(), "Entry {{0}} of {{1}} added.")
        self.assertEqual(unit.target_state(), TargetState.FINAL)
        self.assertFalse(unit.supports_set_target_state())

    def test_tags_in_target(self):
        unit = self.doc.trans_unit_with_id("7609655310648429098")
        self.assertEqual(unit.target_content_normalized().as_display_string(),
                         "This message is <b><strong>VERY IMPORTANT</strong></b>")
        unit = self.doc.trans_unit_with_id("7610784844464920497")
        self.assertEqual(unit.target_content_normalized().as_display_string(),
                         "This message is <strange>{{0}}</strange>")

    def test_meaning_description_and_references(self):
        unit = self.doc.trans_unit_with_id("3274258156935474372")
        self.assertEqual(unit.meaning(), "dateservice.monday")
        self.assertEqual(unit.description(), "ngx-translate")
        self.assertIsNone(self.doc.trans_unit_with_id("2047558209369508311").meaning())

        self.assertEqual(self.doc.trans_unit_with_id("9030312858648510700").source_references(),
                         [SourceReference(SRC, 6)])
        refs = self.doc.trans_unit_with_id("4371668001355139802").source_references()
        self.assertEqual([r.linenumber for r in refs], [2, 3])
        self.assertEqual(self.doc.trans_unit_with_id("7149517499881679376").source_references(),
                         [SourceReference(SRC, 7)])
        self.assertEqual(self.doc.trans_unit_with_id("no_sourceref_test").source_references(), [])

    def test_translate(self):
        unit = self.doc.trans_unit_with_id("9030312858648510700")
        unit.translate("{{1}} has {{0}} entries")
        self.assertEqual(unit.target_content(),
                         '<ph name="INTERPOLATION_1"/> has <ph name="INTERPOLATION"/> entries')
        self.assertIn('<translation id="9030312858648510700"><ph name="INTERPOLATION_1"/> has',
                      self.doc.edited_content())

    def test_translate_mismatch_keeps_target(self):
        unit = self.doc.trans_unit_with_id("9030312858648510700")
        with self.assertRaises(PlaceholderMismatchError) as ctx:
            unit.translate("Entry {{0}}")
        self.assertEqual(ctx.exception.missing, ["{{1}}"])
        self.assertEqual(unit.target_content_normalized().as_display_string(), "Entry {{0}} of {{1}} added.")

    def test_translate_updates_counters(self):
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 2)
        unit = self.doc.trans_unit_with_id("4371668001355139802")
        self.assertEqual(unit.target_state(), TargetState.NEW)
        unit.translate("Two sources")
        self.assertEqual(unit.target_state(), TargetState.FINAL)
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 1)
        self.assertEqual(self.doc.number_of_reviewed_trans_units(), 10)

    def test_translate_without_master_checks_against_target(self):
        doc = TranslationDocument.from_content("xtb", self.content, self.XTB)
        unit = doc.trans_unit_with_id("9030312858648510700")
        self.assertIsNone(unit.source_content())
        self.assertEqual(unit.target_state(), TargetState.NEW)
        unit.translate("{{0}} / {{1}}")
        with self.assertRaises(PlaceholderMismatchError):
            unit.translate("{{0}}")

    def test_set_target_state_is_ignored(self):
        unit = self.doc.trans_unit_with_id("2047558209369508311")
        before = self.doc.edited_content()
        unit.set_target_state(TargetState.NEW)
        self.assertEqual(unit.target_state(), TargetState.FINAL)
        self.assertEqual(self.doc.edited_content(), before)

    def test_remove_unit(self):
        self.doc.remove_trans_unit_with_id("2047558209369508311")
        self.assertEqual(self.doc.number_of_trans_units(), 10)
        self.assertIsNone(self.doc.trans_unit_with_id("2047558209369508311"))
        self.assertNotIn("2047558209369508311", self.doc.edited_content())
        # unknown ids are ignored
        self.doc.remove_trans_unit_with_id("nonexistent")
        self.assertEqual(self.doc.number_of_trans_units(), 10)

    def _unit_to_merge(self):
        master = TranslationDocument.from_content("xmb", read_testdata("ngExtractedMaster1.xmb"))
        return master.trans_unit_with_id("unittomerge")

    def test_import_unit_copy_content(self):
        self.assertIsNone(self.doc.trans_unit_with_id("unittomerge"))
        new_unit = self.doc.import_new_trans_unit(self._unit_to_merge(), False, True)
        self.assertIs(self.doc.trans_unit_with_id("unittomerge"), new_unit)
        self.assertEqual(new_unit.target_content(), "Test for merging units")
        self.assertEqual(new_unit.source_content(), "Test for merging units")
        self.assertEqual(new_unit.target_state(), TargetState.NEW)
        self.assertEqual(self.doc.number_of_trans_units(), 12)
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 3)
        self.assertIn('<translation id="unittomerge">Test for merging units</translation>',
                      self.doc.edited_content())

        new_unit.translate("Test für das Mischen")
        self.assertEqual(new_unit.target_state(), TargetState.FINAL)
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 2)

    def test_import_unit_with_prefix_and_suffix(self):
        self.doc.new_unit_target_prefix = "%%"
        self.doc.new_unit_target_suffix = "!!"
        new_unit = self.doc.import_new_trans_unit(self._unit_to_merge(), False, True)
        self.assertEqual(new_unit.target_content(), "%%Test for merging units!!")

    def test_import_unit_default_language(self):
        self.doc.new_unit_target_prefix = "%%"
        new_unit = self.doc.import_new_trans_unit(self._unit_to_merge(), True, True)
        self.assertEqual(new_unit.target_content(), "Test for merging units")
        self.assertEqual(new_unit.target_state(), TargetState.FINAL)

    def test_import_unit_without_copy(self):
        new_unit = self.doc.import_new_trans_unit(self._unit_to_merge(), False, False)
        self.assertEqual(new_unit.target_content(), "")
        self.assertEqual(new_unit.target_state(), TargetState.NEW)

    def test_import_duplicate(self):
        unit = self._unit_to_merge()
        self.doc.import_new_trans_unit(unit, False, True)
        with self.assertRaises(DuplicateIdError) as ctx:
            self.doc.import_new_trans_unit(unit, False, True)
        self.assertIn("unittomerge", str(ctx.exception))
        self.assertEqual(self.doc.number_of_trans_units(), 12)

    def test_import_and_remove_restores_counters(self):
        counters = (self.doc.number_of_trans_units(), self.doc.number_of_untranslated_trans_units(),
                    self.doc.number_of_reviewed_trans_units())
        self.doc.import_new_trans_unit(self._unit_to_merge(), False, True)
        self.doc.remove_trans_unit_with_id("unittomerge")
        self.assertEqual((self.doc.number_of_trans_units(), self.doc.number_of_untranslated_trans_units(),
                          self.doc.number_of_reviewed_trans_units()), counters)
        self.assertIsNone(self.doc.trans_unit_with_id("unittomerge"))

    def test_for_each_trans_unit(self):
        ids = []
        self.doc.for_each_trans_unit(lambda unit: ids.append(unit.id))
        self.assertEqual(ids[0], "2047558209369508311")
        self.assertIsNone(ids[-1])
        self.assertEqual(ids, [unit.id for unit in self.doc])

    def _snapshot(self, doc):
        counters = (doc.number_of_trans_units(), doc.number_of_trans_units_with_missing_id(),
                    doc.number_of_untranslated_trans_units(), doc.number_of_reviewed_trans_units())
        units = [(u.id, u.target_content(), u.target_state()) for u in doc]
        return counters, units

    def test_serialization_is_stable(self):
        first = self.doc.edited_content()
        self.assertTrue(first.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        reread = TranslationDocument.from_content("xtb", first, self.XTB, self.master_content, self.MASTER)
        self.assertEqual(reread.edited_content(), first)
        self.assertEqual(self._snapshot(reread), self._snapshot(self.doc))

    def test_imported_units_keep_state_after_reload(self):
        self.doc.import_new_trans_unit(self._unit_to_merge(), False, True)
        self.doc.trans_unit_with_id("4371668001355139802").translate("Two sources")
        reread = TranslationDocument.from_content("xtb", self.doc.edited_content(), self.XTB,
                                                  self.master_content, self.MASTER)
        self.assertEqual(self._snapshot(reread), self._snapshot(self.doc))
        self.assertEqual(reread.trans_unit_with_id("unittomerge").target_state(), TargetState.NEW)

    def test_copy_of_master_text_is_new(self):
        unit = self.doc.trans_unit_with_id("2047558209369508311")
        unit.translate("Meine erste I18N-Anwendung")
        self.assertEqual(unit.target_state(), TargetState.NEW)
        self.assertEqual(self.doc.number_of_reviewed_trans_units(), 8)

    def test_file_in_master_language_is_reviewed(self):
        self.doc.set_target_language("de")
        self.doc.trans_unit_with_id("2047558209369508311").translate("Meine erste I18N-Anwendung")
        self.assertEqual(self.doc.trans_unit_with_id("2047558209369508311").target_state(), TargetState.FINAL)
        # empty targets stay NEW
        self.assertEqual(self.doc.number_of_untranslated_trans_units(), 2)

    def test_import_from_xmb_drops_examples(self):
        empty = TranslationDocument.from_content("xtb", dialect_for("xtb").skeleton("en"), "messages.en.xtb")
        master = TranslationDocument.from_content("xmb", self.master_content, self.MASTER)
        new_unit = empty.import_new_trans_unit(master.trans_unit_with_id("9030312858648510700"), False, True)
        self.assertEqual(new_unit.target_content(),
                         'Eintrag <ph name="INTERPOLATION"/> von <ph name="INTERPOLATION_1"/> hinzugefügt.')

    def test_create_translation_file_unsupported(self):
        with self.assertRaises(UnsupportedOperationError):
            self.doc.create_translation_file_for_lang("fr", "messages.fr.xtb", False, True)

    def test_not_an_xtb_file(self):
        with self.assertRaises(FormatError):
            TranslationDocument.from_content("xtb", self.master_content, self.MASTER)
        with self.assertRaises(FormatError):
            TranslationDocument.from_content("xtb", "<translationbundle>", "broken.xtb")


if __name__ == '__main__':
    unittest.main()
