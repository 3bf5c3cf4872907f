import itertools
import unittest

from office_hours.domain.matching.schemas import MenteeProfile, MentorProfile
from office_hours.domain.matching.scoring import (
    calculate_match_score,
    calculate_smart_overlap,
    get_stage_keywords,
    score_breakdown,
    to_percentage,
)


def mentee(industry=None, stage=None, id=1):
    return MenteeProfile(id=id, industry_focus=industry, startup_stage=stage)


def mentor(expertise=None, industry=None, id=2):
    return MentorProfile(id=id, expertise_areas=expertise, industry_focus=industry)


class TestSmartOverlap(unittest.TestCase):

    def test_empty_lists_score_zero(self):
        self.assertEqual(calculate_smart_overlap([], ["FinTech"]), 0)
        self.assertEqual(calculate_smart_overlap(["FinTech"], []), 0)
        self.assertEqual(calculate_smart_overlap([], []), 0)

    def test_exact_match_is_case_insensitive(self):
        self.assertEqual(calculate_smart_overlap(["SaaS"], ["saas"]), 1.0)
        self.assertEqual(calculate_smart_overlap(["FinTech"], ["FinTech"]), 1.0)

    def test_substring_match(self):
        self.assertEqual(calculate_smart_overlap(["FinTech"], ["FinTech Solutions"]), 0.7)
        self.assertEqual(calculate_smart_overlap(["FinTech Solutions"], ["fintech"]), 0.7)

    def test_shared_significant_word(self):
        # "learning" is shared; words are counted against the longer label (3 words)
        self.assertAlmostEqual(
            calculate_smart_overlap(["Machine Learning"], ["Deep Learning Research"]), 0.4 / 3
        )

    def test_shared_word_by_containment(self):
        # "health" is contained in "healthcare"; "tech" matches nothing
        self.assertAlmostEqual(
            calculate_smart_overlap(["Health Tech"], ["Healthcare Services"]), 0.2
        )

    def test_slash_and_hyphen_split_words(self):
        self.assertAlmostEqual(
            calculate_smart_overlap(["AI/ML Platforms"], ["Platform Engineering"]), 0.4 / 3
        )

    def test_short_words_never_share(self):
        self.assertEqual(calculate_smart_overlap(["AI ML"], ["ML Ops"]), 0)

    def test_duplicates_each_contribute(self):
        without_duplicate = calculate_smart_overlap(["FinTech", "Health"], ["FinTech"])
        with_duplicate = calculate_smart_overlap(["FinTech", "FinTech", "Health"], ["FinTech"])
        self.assertAlmostEqual(without_duplicate, 0.5)
        self.assertAlmostEqual(with_duplicate, 2 / 3)

    def test_result_is_capped_at_one(self):
        self.assertEqual(calculate_smart_overlap(["AI", "AI"], ["AI", "ai/ml"]), 1.0)

    def test_case_variation_does_not_change_result(self):
        self.assertEqual(
            calculate_smart_overlap(["FINTECH Payments"], ["fintech"]),
            calculate_smart_overlap(["fintech payments"], ["FinTech"]),
        )

    def test_result_always_in_unit_interval(self):
        labels = [
            ["AI"],
            ["AI/ML", "Machine Learning"],
            ["FinTech", "FinTech", "Payments"],
            ["Healthcare Services", "Health Tech", "Digital Health"],
            ["B2B SaaS", "Enterprise Software"],
        ]
        for a, b in itertools.product(labels, repeat=2):
            value = calculate_smart_overlap(a, b)
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)


class TestMatchScore(unittest.TestCase):

    def test_no_stage_and_no_overlap_hits_floor(self):
        score = calculate_match_score(
            mentee(["Biotech"]), mentor(["Marketing"], ["Retail"])
        )
        self.assertEqual(score, 30)

    def test_full_overlap_with_stage_hit_hits_ceiling(self):
        score = calculate_match_score(
            mentee(["FinTech", "Fundraising"], "seed"),
            mentor(["FinTech", "Fundraising"], ["FinTech", "Fundraising"]),
        )
        self.assertEqual(score, 95)

    def test_fintech_seed_scenario(self):
        # industry 1.0 * 0.35 + expertise (1.0 / 2) * 0.35 + stage 0.20 + 0.10 = 0.825,
        # which accumulates to just under 0.825 in floating point and rounds to 82
        score = calculate_match_score(
            mentee(["FinTech"], "seed"), mentor(["Fundraising", "FinTech"], ["FinTech"])
        )
        self.assertEqual(score, 82)

    def test_industry_only_match_without_stage(self):
        score = calculate_match_score(mentee(["FinTech"]), mentor(["Marketing"], ["FinTech"]))
        self.assertEqual(score, 55)

    def test_general_expertise_when_no_stage_keyword(self):
        m = mentor(["Fundraising"])
        self.assertEqual(calculate_match_score(mentee([], "late"), m), 30)
        self.assertEqual(score_breakdown(mentee([], "late"), m).stage_relevance, 60)

    def test_no_stage_related_expertise(self):
        breakdown = score_breakdown(mentee([], "late"), mentor(["Design"]))
        self.assertEqual(breakdown.stage_relevance, 25)

    def test_unspecified_stage_is_neutral(self):
        breakdown = score_breakdown(mentee([]), mentor(["Design"]))
        self.assertEqual(breakdown.stage_relevance, 50)

    def test_unknown_stage_uses_default_keywords(self):
        self.assertEqual(get_stage_keywords("series-x"), ["startup", "business"])
        breakdown = score_breakdown(mentee([], "series-x"), mentor(["Business Operations"]))
        self.assertEqual(breakdown.stage_relevance, 100)

    def test_stage_and_keywords_are_case_insensitive(self):
        m = mentor(["Go-To-Market Strategy"])
        self.assertEqual(score_breakdown(mentee([], "SEED"), m).stage_relevance, 100)
        self.assertEqual(
            calculate_match_score(mentee(["AI"], "SEED"), m),
            calculate_match_score(mentee(["AI"], "seed"), m),
        )

    def test_missing_fields_are_neutral(self):
        score = calculate_match_score(
            MenteeProfile(id=1, industry_focus=None, startup_stage=None),
            MentorProfile(id=2, expertise_areas=None, industry_focus=None),
        )
        self.assertEqual(score, 30)

    def test_blank_stage_treated_as_missing(self):
        self.assertIsNone(mentee([], "  ").startup_stage)

    def test_score_always_integer_in_range(self):
        mentees = [
            mentee([]),
            mentee(["FinTech"], "seed"),
            mentee(["AI", "Healthcare"], "growth"),
            mentee(["SaaS"], "unknown"),
        ]
        mentors = [
            mentor([]),
            mentor(["Fundraising", "FinTech"], ["FinTech"]),
            mentor(["Scaling Operations", "AI/ML"], ["Healthcare", "AI"]),
            mentor(["Startup Strategy"], ["SaaS"]),
        ]
        for a, b in itertools.product(mentees, mentors):
            score = calculate_match_score(a, b)
            self.assertIsInstance(score, int)
            self.assertGreaterEqual(score, 30)
            self.assertLessEqual(score, 95)

    def test_scoring_is_deterministic(self):
        a = mentee(["AI", "Healthcare"], "early")
        b = mentor(["Hiring", "Healthcare Operations"], ["AI"])
        self.assertEqual(calculate_match_score(a, b), calculate_match_score(a, b))
        self.assertEqual(score_breakdown(a, b), score_breakdown(a, b))

    def test_breakdown_for_fintech_scenario(self):
        breakdown = score_breakdown(
            mentee(["FinTech"], "seed"), mentor(["Fundraising", "FinTech"], ["FinTech"])
        )
        self.assertEqual(breakdown.industry_match, 100)
        self.assertEqual(breakdown.expertise_match, 50)
        self.assertEqual(breakdown.stage_relevance, 100)
        self.assertEqual(breakdown.availability, 100)

    def test_breakdown_rounds_half_up(self):
        # One exact hit among eight industries is an overlap of exactly 0.125
        industries = ["FinTech", "Qa", "Qb", "Qc", "Qd", "Qe", "Qf", "Qg"]
        breakdown = score_breakdown(mentee(industries), mentor([], ["FinTech"]))
        self.assertEqual(breakdown.industry_match, 13)

    def test_to_percentage(self):
        self.assertEqual(to_percentage(0.125), 13)
        self.assertEqual(to_percentage(0.0), 0)


if __name__ == "__main__":
    unittest.main()
