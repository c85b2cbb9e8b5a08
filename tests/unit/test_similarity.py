"""
Unit tests for SimilarityEngine and its components.
"""
import pytest

from discovery.models.schemas import ContentCategory, Difficulty, UserHistory
from discovery.repositories.memory import build_mock_content
from discovery.services.similarity import (
    CategoryMatch,
    DifficultyProgression,
    SimilarityEngine,
    TagSimilarity,
    UserHistoryAffinity,
    default_components,
)


@pytest.fixture
def corpus():
    return build_mock_content()


def _by_id(corpus, item_id):
    return next(item for item in corpus if item.id == item_id)


class TestSimilarityComponents:
    def test_default_weights(self):
        weights = {c.name: c.weight for c in default_components()}

        assert weights == {
            "category_match": 0.30,
            "tag_similarity": 0.25,
            "user_history": 0.20,
            "difficulty_progression": 0.10,
        }

    def test_tag_similarity_is_jaccard(self, make_item):
        a = make_item("a", tags=["pricing", "framing"])
        b = make_item("b", tags=["pricing", "anchoring", "trust"])

        assert TagSimilarity().calculate(a, b, None) == pytest.approx(1 / 4)
        assert TagSimilarity().calculate(a, make_item("c"), None) == 0.0

    def test_category_match(self, make_item):
        a = make_item("a", category=ContentCategory.UX_PSYCHOLOGY)
        b = make_item("b", category=ContentCategory.UX_PSYCHOLOGY)
        c = make_item("c", category=ContentCategory.EMOTIONAL_TRIGGERS)

        assert CategoryMatch().calculate(a, b, None) == 1.0
        assert CategoryMatch().calculate(a, c, None) == 0.0

    @pytest.mark.parametrize(
        "source, candidate, expected",
        [
            (Difficulty.BEGINNER, Difficulty.BEGINNER, 1.0),
            (Difficulty.BEGINNER, Difficulty.INTERMEDIATE, 0.8),
            (Difficulty.ADVANCED, Difficulty.INTERMEDIATE, 0.6),
            (Difficulty.BEGINNER, Difficulty.ADVANCED, 0.3),
            (Difficulty.ADVANCED, Difficulty.BEGINNER, 0.3),
        ],
    )
    def test_difficulty_progression(self, make_item, source, candidate, expected):
        a = make_item("a", difficulty=source)
        b = make_item("b", difficulty=candidate)

        assert DifficultyProgression().calculate(a, b, None) == expected

    def test_user_history_affinity(self, make_item):
        source = make_item("source")
        explored = make_item("explored", category=ContentCategory.COGNITIVE_BIASES)
        read = make_item("read", category=ContentCategory.UX_PSYCHOLOGY)
        fresh = make_item("fresh", category=ContentCategory.UX_PSYCHOLOGY)
        history = UserHistory(
            user_id="u",
            read_items={"read"},
            categories_explored=[ContentCategory.COGNITIVE_BIASES],
        )
        component = UserHistoryAffinity()

        assert component.calculate(source, explored, history) == 0.7
        assert component.calculate(source, read, history) == 0.0
        assert component.calculate(source, fresh, history) == 0.5
        assert component.calculate(source, fresh, None) == 0.0


class TestSimilarityEngine:
    def test_weighted_sum(self, corpus):
        engine = SimilarityEngine()
        anchoring = _by_id(corpus, "anchoring-bias")
        confirmation = _by_id(corpus, "confirmation-bias")

        # category 0.30 + tags (1/5) * 0.25 + difficulty 0.8 * 0.10
        assert engine.calculate_similarity(anchoring, confirmation) == pytest.approx(0.43)

    def test_breakdown_names_every_component(self, corpus):
        breakdown = SimilarityEngine().score_breakdown(corpus[0], corpus[1])

        assert set(breakdown) == {
            "category_match",
            "tag_similarity",
            "user_history",
            "difficulty_progression",
            "final",
        }

    def test_scores_stay_in_unit_interval(self, corpus):
        engine = SimilarityEngine()
        history = UserHistory(user_id="u", categories_explored=list(ContentCategory))

        for source in corpus:
            for candidate in corpus:
                score = engine.calculate_similarity(source, candidate, history)
                assert 0.0 <= score <= 1.0

    def test_reflexive_similarity_dominates(self, corpus):
        engine = SimilarityEngine()

        for source in corpus:
            self_score = engine.calculate_similarity(source, source)
            for candidate in corpus:
                assert self_score >= engine.calculate_similarity(source, candidate)

    def test_rank_related_excludes_source(self, corpus):
        engine = SimilarityEngine()

        for source in corpus:
            related = engine.rank_related(source, corpus, limit=len(corpus))
            assert source.id not in [item.id for item, _ in related]
            assert len(related) == len(corpus) - 1

    def test_rank_related_order_and_limit(self, corpus):
        ranked = SimilarityEngine().rank_related(
            _by_id(corpus, "anchoring-bias"), corpus, limit=3
        )

        assert [item.id for item, _ in ranked] == [
            "confirmation-bias",
            "loss-aversion",
            "scarcity",
        ]
        scores = [score for _, score in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_rank_related_skips_read_items(self, corpus, sample_history):
        ranked = SimilarityEngine().rank_related(
            _by_id(corpus, "confirmation-bias"), corpus, history=sample_history, limit=10
        )

        assert "anchoring-bias" not in [item.id for item, _ in ranked]

    def test_popularity_breaks_ties(self, corpus):
        engine = SimilarityEngine()
        source = _by_id(corpus, "anchoring-bias")

        ranked = engine.rank_related(source, corpus, popularity={"scarcity": 1.0}, limit=2)

        assert [item.id for item, _ in ranked] == ["confirmation-bias", "scarcity"]

    def test_popularity_does_not_change_scores(self, corpus):
        engine = SimilarityEngine()
        source = _by_id(corpus, "anchoring-bias")

        plain = engine.rank_related(source, corpus, limit=len(corpus))
        popular = engine.rank_related(
            source, corpus, popularity={item.id: 1.0 for item in corpus}, limit=len(corpus)
        )

        assert dict((item.id, s) for item, s in plain) == dict(
            (item.id, s) for item, s in popular
        )

    def test_self_similarity_dominates_popular_candidate(self, make_item):
        engine = SimilarityEngine()
        a = make_item("a", tags=["x", "y", "z"])
        b = make_item("b", tags=["x", "y"])

        ranked = engine.rank_related(a, [a, b], popularity={"b": 1.0, "a": 0.0})

        assert engine.calculate_similarity(a, a) > engine.calculate_similarity(a, b)
        assert ranked == [(b, engine.calculate_similarity(a, b))]
