import json
import os
import tempfile
import unittest

from extract.config import ExtractConfig
from extract.constants import MARKERS
from extract.errors import ExtractError
from extract.selection import TARGET_SELECT
from extract.session import OverlaySession

from tests.fakes import FakeDocument, el, hero

HL = MARKERS["highlighted"]
SEL = MARKERS["selected"]


def _page():
    a = el("div", (400, 0, 400, 200), "a")
    b = el("div", (400, 600, 400, 200), "b")
    body = el("body", (0, 0, 1200, 800), a, el("p", (0, 0, 0, 0), "between"), b)
    return body, a, b


class OverlaySessionTests(unittest.TestCase):
    def test_not_mounted_until_extracted(self):
        session = OverlaySession(FakeDocument(_page()[0]))
        self.assertFalse(session.is_mounted())
        self.assertFalse(session.is_mounted())
        with self.assertRaises(ExtractError) as ctx:
            session.click("0")
        self.assertEqual(ctx.exception.code, "NOT_MOUNTED")

    def test_extract_and_interact(self):
        body, a, b = _page()
        session = OverlaySession(FakeDocument(body))
        tree = session.extract_now()
        self.assertTrue(session.is_mounted())
        self.assertEqual([c.element for c in tree.children], [a, b])
        session.click("0.0")
        session.click("0.1")
        self.assertFalse(a.has_class(HL))
        self.assertTrue(b.has_class(HL))
        session.dispatch("0.0", TARGET_SELECT)
        self.assertTrue(a.has_class(SEL))
        self.assertFalse(session.toggle_expand("0"))
        with self.assertRaises(ExtractError) as ctx:
            session.toggle_select("0.7")
        self.assertEqual(ctx.exception.code, "UNKNOWN_NODE")

    def test_rebuild_is_idempotent(self):
        body, a, b = _page()
        session = OverlaySession(FakeDocument(body))
        first = session.extract_now()
        session.click("0.0")
        session.toggle_select("0.1")
        second = session.extract_now()
        self.assertIsNot(first, second)
        self.assertFalse(a.classes or b.classes)
        self.assertTrue(a.released and b.released)
        self.assertIsNone(session.machine.highlighted)
        session.click("0.1")
        self.assertEqual([e for e in (a, b) if e.has_class(HL)], [b])

    def test_dismiss(self):
        body, a, b = _page()
        session = OverlaySession(FakeDocument(body))
        session.extract_now()
        session.toggle_select("0.0")
        session.dismiss()
        self.assertFalse(session.is_mounted())
        self.assertIsNone(session.tree)
        self.assertFalse(a.has_class(SEL))

    def test_no_content_found(self):
        session = OverlaySession(FakeDocument(el("body", (0, 0, 1200, 800), hero(style={"display": "none"}))))
        self.assertIsNone(session.extract_now())
        self.assertTrue(session.is_mounted())
        self.assertEqual(session.machine.selected_nodes(), [])

    def test_missing_root(self):
        session = OverlaySession(FakeDocument(None))
        self.assertIsNone(session.extract_now())
        self.assertEqual([w["code"] for w in session.warnings], ["NO_ROOT"])

    def test_config_profile_and_markers(self):
        box = el("div", (400, 250, 150, 150))
        cfg = ExtractConfig(profile="in_bounds", marker_selected="picked")
        session = OverlaySession(FakeDocument(el("body", (0, 0, 1200, 800), box)), cfg)
        self.assertIsNotNone(session.extract_now())
        session.toggle_select("0.0")
        self.assertTrue(box.has_class("picked"))

    def test_export(self):
        body, a, b = _page()
        session = OverlaySession(FakeDocument(body))
        session.extract_now()
        session.click("0.0")
        session.toggle_select("0.1")
        with tempfile.TemporaryDirectory() as tmp:
            paths = session.export(tmp, meta={"url": "https://example.com"})
            with open(paths["tree"], "r", encoding="utf-8") as f:
                tree = json.load(f)
            with open(paths["selected"], "r", encoding="utf-8") as f:
                selected = json.load(f)
            self.assertTrue(os.path.exists(paths["tree"]))
        self.assertEqual(tree["meta"]["url"], "https://example.com")
        self.assertEqual(tree["meta"]["profile"], "center")
        self.assertEqual(tree["meta"]["count"], 3)
        self.assertTrue(tree["nodes"][1]["highlighted"])
        self.assertEqual(selected["selected"], [{"path": "0.1", "tag": "div", "own_text": "b", "bbox": [400, 600, 400, 200]}])


if __name__ == "__main__":
    unittest.main()
