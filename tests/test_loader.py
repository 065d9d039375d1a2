import os
import shutil
import tempfile
import unittest

from i18nbundle.loader import load_document, save_document
from i18nbundle import TranslationDocument

TESTDATA = os.path.join(os.path.dirname(__file__), "testdata")


class TestLoader(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        for name in ("ngExtractedMaster1.de.xmb", "ngExtractedMaster1.en.xtb", "angular-messages.de.xlf"):
            shutil.copy(os.path.join(TESTDATA, name), self.test_dir)
        self.xtb_path = os.path.join(self.test_dir, "ngExtractedMaster1.en.xtb")
        self.master_path = os.path.join(self.test_dir, "ngExtractedMaster1.de.xmb")

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_load_with_master(self):
        doc = load_document(self.xtb_path, self.master_path)
        self.assertEqual(doc.format(), "xtb")
        self.assertEqual(doc.path, self.xtb_path)
        self.assertEqual(doc.source_language(), "de")
        self.assertEqual(doc.number_of_reviewed_trans_units(), 9)

    def test_load_with_explicit_format(self):
        doc = load_document(os.path.join(self.test_dir, "angular-messages.de.xlf"), format_tag="xlf")
        self.assertEqual(doc.number_of_trans_units(), 5)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_document(os.path.join(self.test_dir, "missing.xtb"))
        with self.assertRaises(FileNotFoundError):
            load_document(self.xtb_path, os.path.join(self.test_dir, "missing.xmb"))

    def test_save_and_reload(self):
        doc = load_document(self.xtb_path, self.master_path)
        doc.trans_unit_with_id("4371668001355139802").translate("Two sources")
        save_document(doc)

        reloaded = load_document(self.xtb_path, self.master_path)
        self.assertEqual(reloaded.trans_unit_with_id("4371668001355139802").target_content(), "Two sources")
        self.assertEqual(reloaded.number_of_untranslated_trans_units(), 1)

    def test_save_new_translation_file(self):
        master = load_document(self.master_path)
        target_path = os.path.join(self.test_dir, "messages.fr.xtb")
        translation = master.create_translation_file_for_lang("fr", target_path, False, True)
        save_document(translation)
        reloaded = load_document(target_path, self.master_path)
        self.assertEqual(reloaded.target_language(), "fr")
        self.assertEqual(reloaded.number_of_trans_units(), 10)

    def test_save_without_path(self):
        with open(self.xtb_path, "r", encoding="utf-8") as f:
            doc = TranslationDocument.from_content("xtb", f.read())
        with self.assertRaises(ValueError):
            save_document(doc)


if __name__ == '__main__':
    unittest.main()
