import unittest
from dataclasses import dataclass

from opencode_resume.fuzzy import filter_sessions, matches, score


@dataclass(frozen=True)
class _Item:
    title: str


def _is_subsequence(q: str, t: str) -> bool:
    it = iter(t.lower())
    return all(ch in it for ch in q.lower())


class TestMatches(unittest.TestCase):
    def test_subsequence_case_insensitive(self) -> None:
        self.assertTrue(matches("api", "API Server"))
        self.assertTrue(matches("asr", "API Server"))
        self.assertTrue(matches("ApI", "server-transpiler"))
        self.assertFalse(matches("ipa", "API Server"))
        self.assertFalse(matches("apix", "api-helper"))

    def test_empty_query_matches_everything(self) -> None:
        self.assertTrue(matches("", ""))
        self.assertTrue(matches("", "anything"))

    def test_agrees_with_subsequence_definition(self) -> None:
        titles = ["server-transpiler", "API Server", "api-helper", "fix_build", "Übersicht", ""]
        queries = ["a", "api", "sr", "ser", "fb", "ub", "zz", "rr", "-h", "p i"]
        for t in titles:
            for q in queries:
                with self.subTest(q=q, t=t):
                    self.assertEqual(matches(q, t), _is_subsequence(q, t))
                    self.assertEqual(score(q, t) == 0, not matches(q, t))


class TestScore(unittest.TestCase):
    def test_non_match_scores_zero(self) -> None:
        self.assertEqual(score("xyz", "API Server"), 0)

    def test_start_bonus_and_runs(self) -> None:
        # a(+2 +10) p(+4) i(+6)
        self.assertEqual(score("api", "API Server"), 22)
        self.assertEqual(score("api", "api-helper"), 22)

    def test_greedy_first_occurrence(self) -> None:
        # a at 9, p at 12 (run reset), i at 13 (run 2)
        self.assertEqual(score("api", "server-transpiler"), 2 + 2 + 4)

    def test_separator_bonus(self) -> None:
        # h follows "-": run 1 (+2) plus separator bonus (+5)
        self.assertEqual(score("h", "api-helper"), 7)
        self.assertEqual(score("b", "fix_build"), 7)
        self.assertEqual(score("s", "API Server"), 7)

    def test_run_resets_on_gap(self) -> None:
        self.assertEqual(score("ab", "ab"), 2 + 10 + 4)
        self.assertEqual(score("ab", "axb"), 2 + 10 + 2)


class TestFilterSessions(unittest.TestCase):
    def test_empty_query_returns_input_order(self) -> None:
        items = [_Item("b"), _Item("a"), _Item("c")]
        out = filter_sessions(items, "")
        self.assertEqual(out, items)
        self.assertIsNot(out, items)

    def test_api_ranking(self) -> None:
        items = [_Item("server-transpiler"), _Item("API Server"), _Item("api-helper")]
        out = filter_sessions(items, "api")
        self.assertEqual([i.title for i in out], ["API Server", "api-helper", "server-transpiler"])

    def test_ties_keep_original_order(self) -> None:
        items = [_Item("api-two"), _Item("other"), _Item("api-one"), _Item("API three")]
        out = filter_sessions(items, "api")
        self.assertEqual([i.title for i in out], ["api-two", "api-one", "API three"])

    def test_custom_key(self) -> None:
        items = ["alpha", "beta", "gamma"]
        self.assertEqual(filter_sessions(items, "am", key=lambda s: s), ["gamma"])


if __name__ == "__main__":
    unittest.main()
