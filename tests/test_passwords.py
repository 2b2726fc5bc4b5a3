import hashlib
import unittest

from application.passwords import PasswordHasher


class PasswordHasherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.hasher = PasswordHasher()

    def test_hash_is_hex_sha256_of_utf8(self):
        self.assertEqual(
            self.hasher.hash("1234"),
            "03ac674216f3e15c761ee1a5e255f067953623c8b388b4459e13f978d7c846f4",
        )
        self.assertEqual(len(self.hasher.digest("1234")), 32)

    def test_hash_is_deterministic(self):
        self.assertEqual(self.hasher.hash("hunter2"), self.hasher.hash("hunter2"))

    def test_distinct_passwords_give_distinct_hashes(self):
        self.assertNotEqual(self.hasher.hash("1234"), self.hasher.hash("12345"))
        self.assertNotEqual(self.hasher.hash("abc"), self.hasher.hash("ABC"))

    def test_empty_and_multibyte_passwords(self):
        self.assertEqual(self.hasher.hash(""), hashlib.sha256(b"").hexdigest())
        self.assertEqual(
            self.hasher.hash("пароль✓"),
            hashlib.sha256("пароль✓".encode("utf-8")).hexdigest(),
        )

    def test_verify(self):
        stored = self.hasher.hash("1234")
        self.assertTrue(self.hasher.verify("1234", stored))
        self.assertFalse(self.hasher.verify("wrong", stored))
        self.assertTrue(self.hasher.verify("1234", stored.upper()))

    def test_verify_rejects_malformed_stored_hash(self):
        self.assertFalse(self.hasher.verify("1234", ""))
        self.assertFalse(self.hasher.verify("1234", "not-hex"))
        self.assertFalse(self.hasher.verify("1234", "1234"))


if __name__ == "__main__":
    unittest.main()
