import unittest

from extract.qualifier import IN_BOUNDS_PROFILE
from extract.reducer import build_tree, find_by_path, iter_nodes, release_tree

from tests.fakes import VIEWPORT, el, hero


def _section_with_two_divs():
    left = el("div", (250, 25, 350, 200), "left text")
    right = el("div", (600, 25, 350, 200), "right text")
    section = el("section", (200, 0, 800, 250), "heading", left, right)
    return section, left, right


class ScenarioTests(unittest.TestCase):
    def test_single_centred_div(self):
        div = hero("div", "hello")
        body = el("body", (0, 0, 1200, 2000), div)
        tree = build_tree(body, VIEWPORT)
        # body itself fails the heuristic and is kept as a pass-through spine
        self.assertEqual(tree.tag, "body")
        self.assertFalse(tree.qualifying)
        self.assertEqual(len(tree.children), 1)
        node = tree.children[0]
        self.assertIs(node.element, div)
        self.assertEqual(node.tag, "div")
        self.assertTrue(node.qualifying)
        self.assertFalse(node.has_multiple_children)
        self.assertEqual(node.own_text, "hello")

    def test_single_div_as_root(self):
        tree = build_tree(hero(), VIEWPORT)
        self.assertTrue(tree.qualifying)
        self.assertEqual(tree.children, [])
        self.assertFalse(tree.has_multiple_children)

    def test_transparent_div_is_pruned(self):
        body = el("body", (0, 0, 1200, 2000), hero(style={"opacity": "0"}))
        self.assertIsNone(build_tree(body, VIEWPORT))

    def test_section_with_two_qualifying_divs(self):
        section, left, right = _section_with_two_divs()
        tree = build_tree(section, VIEWPORT)
        self.assertEqual(tree.tag, "section")
        self.assertTrue(tree.qualifying)
        self.assertEqual([c.element for c in tree.children], [left, right])
        self.assertTrue(tree.has_multiple_children)
        self.assertEqual(tree.own_text, "heading")


class ReductionTests(unittest.TestCase):
    def test_empty_page_yields_none(self):
        body = el("body", (0, 0, 1200, 800), el("p", (0, 0, 100, 20), "text"), el("div", (0, 0, 10, 10)))
        self.assertIsNone(build_tree(body, VIEWPORT))

    def test_none_root(self):
        self.assertIsNone(build_tree(None, VIEWPORT))

    def test_pass_through_spine_is_minimal(self):
        target = hero()
        body = el("body", (0, 0, 1200, 2000),
                  el("header", (0, 0, 1200, 60), el("nav", (0, 0, 1200, 60), el("div", (0, 0, 50, 50)))),
                  el("main", (0, 0, 1200, 2000), el("span", (0, 0, 0, 0), target)),
                  el("footer", (0, 1900, 1200, 100)))
        tree = build_tree(body, VIEWPORT)
        self.assertEqual([n.tag for _, n in iter_nodes(tree)], ["body", "main", "span", "div"])
        for _, n in iter_nodes(tree):
            self.assertTrue(n.qualifying or n.children)

    def test_non_target_tags_never_qualify(self):
        body = el("body", (0, 0, 1200, 2000), el("aside", (400, -50, 400, 300)), el("main", (400, -50, 400, 300)))
        self.assertIsNone(build_tree(body, VIEWPORT))

    def test_every_qualifying_element_appears_once(self):
        inner = el("div", (450, 0, 300, 200))
        outer = hero("article", inner)
        other = el("div", (400, 550, 400, 250))
        body = el("body", (0, 0, 1200, 2000), outer, el("div", (0, 300, 1200, 200), other))
        tree = build_tree(body, VIEWPORT)
        elements = [n.element for _, n in iter_nodes(tree) if n.qualifying]
        self.assertEqual(elements, [outer, inner, other])
        self.assertEqual(len(set(map(id, elements))), 3)

    def test_children_keep_document_order(self):
        a = el("div", (400, 0, 400, 200), "a")
        b = el("div", (400, 600, 400, 200), "b")
        c = el("div", (400, 10, 400, 200), "c")
        tree = build_tree(el("body", (0, 0, 1200, 800), a, el("p", (0, 0, 0, 0), b), c), VIEWPORT)
        self.assertEqual([n.own_text for _, n in iter_nodes(tree) if n.qualifying], ["a", "b", "c"])
        self.assertTrue(tree.has_multiple_children)

    def test_own_text_excludes_nested_target_tags_even_if_not_qualifying(self):
        small = el("div", (0, 0, 10, 10), "tiny div text")
        node = hero("div", "mine", small, el("em", (0, 0, 0, 0), "emph"))
        tree = build_tree(node, VIEWPORT)
        self.assertEqual(tree.own_text, "mine emph")
        self.assertEqual(tree.children, [])

    def test_own_text_can_be_disabled(self):
        tree = build_tree(hero("div", "text"), VIEWPORT, track_own_text=False)
        self.assertIsNone(tree.own_text)

    def test_profile_is_applied(self):
        box = el("div", (400, 250, 150, 150))
        body = el("body", (0, 0, 1200, 800), box)
        self.assertIsNone(build_tree(body, VIEWPORT))
        tree = build_tree(body, VIEWPORT, IN_BOUNDS_PROFILE)
        self.assertIs(tree.children[0].element, box)

    def test_broken_element_does_not_abort_walk(self):
        good = hero()
        broken = el("div", (400, 500, 400, 300), el("div", (400, 550, 400, 200)), broken=True)
        body = el("body", (0, 0, 1200, 2000), broken, good)
        warnings = []
        tree = build_tree(body, VIEWPORT, warnings=warnings)
        # broken 自身不合格，但其子元素仍被访问
        self.assertEqual(len(tree.children), 2)
        self.assertFalse(tree.children[0].qualifying)
        self.assertTrue(tree.children[0].children[0].qualifying)
        self.assertIs(tree.children[1].element, good)
        self.assertEqual([w["code"] for w in warnings], ["STYLE_READ_FAILED"])

    def test_deep_document_does_not_hit_recursion_limit(self):
        leaf = hero()
        node = leaf
        for _ in range(1500):
            node = el("span", (0, 0, 0, 0), node)
        tree = build_tree(node, VIEWPORT)
        depth = 0
        cur = tree
        while cur.children:
            cur = cur.children[0]
            depth += 1
        self.assertEqual(depth, 1500)
        self.assertIs(cur.element, leaf)

    def test_detached_element_stops_qualifying(self):
        div = hero()
        self.assertIsNotNone(build_tree(div, VIEWPORT))
        div.box = type(div.box)()
        self.assertIsNone(build_tree(div, VIEWPORT))


class PathTests(unittest.TestCase):
    def test_find_by_path(self):
        section, left, right = _section_with_two_divs()
        tree = build_tree(el("body", (0, 0, 1200, 800), section), VIEWPORT)
        self.assertIs(find_by_path(tree, "0"), tree)
        self.assertIs(find_by_path(tree, "0.0.1").element, right)
        self.assertEqual([p for p, _ in iter_nodes(tree)], ["0", "0.0", "0.0.0", "0.0.1"])
        for bad in ("", "1", "0.5", "0.x", "0.0.0.0"):
            with self.subTest(path=bad):
                self.assertIsNone(find_by_path(tree, bad))
        self.assertIsNone(find_by_path(None, "0"))

    def test_release_tree(self):
        section, left, right = _section_with_two_divs()
        release_tree(build_tree(section, VIEWPORT))
        self.assertTrue(section.released and left.released and right.released)

    def test_pruned_elements_are_released_during_build(self):
        section, left, right = _section_with_two_divs()
        span = el("span", (0, 0, 10, 10), "x")
        noise = el("p", (0, 0, 100, 20), span)
        body = el("body", (0, 0, 1200, 800), noise, section)
        tree = build_tree(body, VIEWPORT, track_own_text=False)
        self.assertTrue(noise.released and span.released)
        self.assertFalse(any(n.element.released for _, n in iter_nodes(tree)))

    def test_empty_result_releases_root(self):
        root = el("body", (0, 0, 1200, 800), el("p", (0, 0, 10, 10), "x"))
        self.assertIsNone(build_tree(root, VIEWPORT, track_own_text=False))
        self.assertTrue(root.released)


if __name__ == "__main__":
    unittest.main()
