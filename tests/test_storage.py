import io
from pathlib import Path
import tempfile
import unittest
from unittest.mock import patch

from marketplace.services import storage_service
from marketplace.services.storage_service import public_url, read_upload, store_upload


class StorageServiceTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.upload_dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_store_upload_writes_under_owner_folder(self):
        stored = store_upload("Data Sheet (v2).pdf", b"%PDF-1.4", 3, upload_dir=self.upload_dir)

        self.assertTrue(stored.path.exists())
        self.assertEqual(stored.path.parent, self.upload_dir / "3")
        self.assertTrue(stored.path.name.startswith("Data_Sheet__v2"))
        self.assertTrue(stored.url.startswith("/uploads/3/Data_Sheet__v2"))
        self.assertTrue(stored.url.endswith(".pdf"))
        self.assertEqual(stored.size, 8)

    def test_same_name_does_not_overwrite(self):
        first = store_upload("module.pan", b"one", 1, upload_dir=self.upload_dir)
        second = store_upload("module.pan", b"two", 1, upload_dir=self.upload_dir)
        self.assertNotEqual(first.path, second.path)

    def test_rejects_unsupported_extension(self):
        with self.assertRaises(ValueError):
            store_upload("payload.exe", b"MZ", 1, upload_dir=self.upload_dir)

    def test_rejects_empty_file(self):
        with self.assertRaises(ValueError):
            store_upload("empty.pdf", b"", 1, upload_dir=self.upload_dir)

    def test_rejects_oversized_pdf(self):
        settings = storage_service.get_settings()
        too_big = b"0" * (settings.UPLOAD_MAX_PDF_BYTES + 1)
        with self.assertRaises(ValueError) as ctx:
            store_upload("big.pdf", too_big, 1, upload_dir=self.upload_dir)
        self.assertEqual(str(ctx.exception), "PDF files must be 5 MB or smaller.")

    def test_pdf_limit_does_not_apply_to_images(self):
        settings = storage_service.get_settings()
        large_image = b"0" * (settings.UPLOAD_MAX_PDF_BYTES + 1)
        stored = store_upload("gallery.png", large_image, 1, upload_dir=self.upload_dir)
        self.assertEqual(stored.size, len(large_image))

    def test_non_pdf_files_have_their_own_limit(self):
        settings = storage_service.get_settings()
        with patch.object(settings, "UPLOAD_MAX_FILE_BYTES", 10):
            with self.assertRaises(ValueError) as ctx:
                store_upload("gallery.png", b"0" * 11, 1, upload_dir=self.upload_dir)
        self.assertIn("Files must be", str(ctx.exception))

    def test_read_upload_returns_whole_stream(self):
        with patch.object(storage_service, "_READ_CHUNK_BYTES", 4):
            data = read_upload(io.BytesIO(b"%PDF-1.4 datasheet"), "sheet.pdf")
        self.assertEqual(data, b"%PDF-1.4 datasheet")

    def test_read_upload_stops_once_pdf_limit_is_passed(self):
        settings = storage_service.get_settings()
        stream = io.BytesIO(b"0" * 100)
        with patch.object(storage_service, "_READ_CHUNK_BYTES", 4), patch.object(
            settings, "UPLOAD_MAX_PDF_BYTES", 10
        ):
            with self.assertRaises(ValueError) as ctx:
                read_upload(stream, "big.pdf", "application/pdf")
        self.assertIn("PDF files must be", str(ctx.exception))
        self.assertEqual(stream.tell(), 12)

    def test_read_upload_rejects_unsupported_extension_before_reading(self):
        stream = io.BytesIO(b"MZ")
        with self.assertRaises(ValueError):
            read_upload(stream, "payload.exe")
        self.assertEqual(stream.tell(), 0)

    def test_public_url_uses_configured_base(self):
        self.assertEqual(public_url("2/a.png", "https://cdn.example.com/"), "https://cdn.example.com/uploads/2/a.png")
        with patch.object(storage_service.get_settings(), "UPLOAD_PUBLIC_BASE_URL", None):
            self.assertEqual(public_url("2/a.png"), "/uploads/2/a.png")


if __name__ == "__main__":
    unittest.main()
