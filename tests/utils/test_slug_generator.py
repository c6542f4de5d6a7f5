import unittest

from fanfic_retriever.utils.slug_generator import generate_slug, slug_or_fallback


class TestSlugGenerator(unittest.TestCase):

    def test_basic_title(self):
        self.assertEqual(generate_slug("The Long Road"), "the-long-road")

    def test_punctuation_and_accents(self):
        self.assertEqual(generate_slug("Café: A Story!"), "cafe-a-story")

    def test_long_title_is_truncated_on_word_boundary(self):
        slug = generate_slug("word " * 40)
        self.assertLessEqual(len(slug), 80)
        self.assertFalse(slug.endswith("-"))
        self.assertTrue(slug.startswith("word-word"))

    def test_non_string_raises(self):
        with self.assertRaises(TypeError):
            generate_slug(None)

    def test_fallback_used_for_missing_or_empty_slug(self):
        self.assertEqual(slug_or_fallback(None, "ffnet-67890"), "ffnet-67890")
        self.assertEqual(slug_or_fallback("!!!", "ao3-12345"), "ao3-12345")
        self.assertEqual(slug_or_fallback("Stars Apart", "ao3-12345"), "stars-apart")
        self.assertEqual(slug_or_fallback("", "???"), "story")


if __name__ == '__main__':
    unittest.main()
