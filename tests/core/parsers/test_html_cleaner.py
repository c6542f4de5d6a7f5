import unittest

from fanfic_retriever.core.parsers.html_cleaner import SCENE_BREAK, HTMLCleaner, normalize_text


class TestHTMLCleaner(unittest.TestCase):

    def setUp(self):
        self.cleaner = HTMLCleaner()

    def test_remove_standard_tags(self):
        raw_html_input = """
        <div><style>.x { color: red; }</style><script>alert('hello');</script>
        <noscript><p>JS disabled</p></noscript><nav><ul><li>Home</li></ul></nav>
        <p>Main content.</p><button>Share</button><form><input name="q"></form></div>
        """
        self.assertEqual(self.cleaner.html_to_text(raw_html_input), "Main content.")

    def test_clean_html_returns_soup_without_comments(self):
        soup = self.cleaner.clean_html("<div><!-- tracking pixel --><p>Kept</p></div>")
        self.assertNotIn("tracking pixel", str(soup))
        self.assertIsNotNone(soup.find('p', string='Kept'))

    def test_paragraphs_and_line_breaks(self):
        raw_html_input = "<div><p>First paragraph.</p><p>Second<br>line two<br/>line three</p></div>"
        self.assertEqual(
            self.cleaner.html_to_text(raw_html_input),
            "First paragraph.\n\nSecond\nline two\nline three",
        )

    def test_horizontal_rule_becomes_scene_break(self):
        text = self.cleaner.html_to_text("<p>Before.</p><hr/><p>After.</p>")
        self.assertEqual(text, f"Before.\n\n{SCENE_BREAK}\n\nAfter.")

    def test_inline_markup_is_flattened(self):
        text = self.cleaner.html_to_text("<p>She <strong>ran</strong>, <em>fast</em>.</p>")
        self.assertEqual(text, "She ran, fast.")

    def test_entities_and_non_breaking_spaces(self):
        text = self.cleaner.html_to_text("<p>Tom&nbsp;&amp;&nbsp;Jerry &mdash; caf&eacute;</p>")
        self.assertEqual(text, "Tom & Jerry — café")

    def test_ao3_selectors(self):
        raw_html_input = """
        <div class="userstuff module" role="article">
          <h3 class="landmark heading" id="work">Chapter Text</h3>
          <p>Story text.</p>
          <div class="notes module"><p>Author note.</p></div>
        </div>
        """
        self.assertEqual(self.cleaner.html_to_text(raw_html_input, source_site="ao3"), "Story text.")

    def test_site_selectors_do_not_apply_to_other_sites(self):
        raw_html_input = "<div><p class='notes'>Part of the story.</p></div>"
        self.assertEqual(self.cleaner.html_to_text(raw_html_input, source_site="ffnet"), "Part of the story.")

    def test_ffnet_selectors(self):
        raw_html_input = "<div id='storytext'><p>Story.</p><div class='a2a_kit'>Share this</div></div>"
        self.assertEqual(self.cleaner.html_to_text(raw_html_input, source_site="ffnet"), "Story.")

    def test_extra_selectors_from_config(self):
        cleaner = HTMLCleaner(config={'extra_selectors': {'ffnet': ['.promo']}})
        text = cleaner.html_to_text("<div><p>Story.</p><p class='promo'>Buy now</p></div>", source_site="ffnet")
        self.assertEqual(text, "Story.")

    def test_empty_fragment(self):
        self.assertEqual(self.cleaner.html_to_text("<div>   </div>"), "")


class TestNormalizeText(unittest.TestCase):

    def test_collapses_blank_lines_and_spaces(self):
        self.assertEqual(normalize_text("  a   b \r\n\r\n\r\n\n c\t\td  "), "a b\n\nc d")


if __name__ == '__main__':
    unittest.main()
