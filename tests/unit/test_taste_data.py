"""
Unit tests for rating-history derivations.
"""
from trustfeed.services import taste_data


class TestSharedDataPoints:
    def test_counts_shared_restaurants_and_cuisines(self, make_rating):
        user = [
            make_rating("r1", 9, "Japanese"),
            make_rating("r2", 8, "Italian"),
            make_rating("r3", 4, "Mexican"),
        ]
        compared = [
            make_rating("r1", 7, "Japanese"),
            make_rating("r2", 6, "Italian"),
            make_rating("r9", 9, "Thai"),
        ]

        shared = taste_data.shared_data_points(user, compared)

        assert shared.shared_restaurants == 2
        assert shared.shared_cuisines == ["Italian", "Japanese"]
        assert shared.total_user_ratings == 3
        assert shared.total_compared_ratings == 3

    def test_no_overlap(self, make_rating):
        shared = taste_data.shared_data_points([make_rating("r1", 9)], [])
        assert shared.shared_restaurants == 0
        assert shared.shared_cuisines == []


class TestPairedRatings:
    def test_one_pair_per_restaurant_with_repeats_averaged(self, make_rating):
        user = [make_rating("r1", 8), make_rating("r1", 6), make_rating("r2", 9)]
        compared = [make_rating("r1", 5), make_rating("r2", 7), make_rating("r3", 1)]

        assert taste_data.paired_ratings(user, compared) == [(7.0, 5.0), (9.0, 7.0)]

    def test_unrated_records_ignored(self, make_rating):
        user = [make_rating("r1", None)]
        compared = [make_rating("r1", 5)]

        assert taste_data.paired_ratings(user, compared) == []


class TestContextTable:
    def test_frequencies(self, make_rating):
        history = [
            make_rating("r1", 9, occasion="date_night", meal_type="dinner"),
            make_rating("r2", 8, occasion="date_night", meal_type="dinner"),
            make_rating("r3", 7, meal_type="lunch"),
            make_rating("r4", 6),
        ]

        assert taste_data.context_table(history) == {
            ("date_night", "dinner"): 2,
            (None, "lunch"): 1,
        }


class TestPreferences:
    def test_shared_and_divergent(self):
        user = {"Japanese": 9.0, "Italian": 8.0, "Mexican": 4.0, "Thai": 6.0}
        compared = {"Japanese": 7.0, "Italian": 5.0, "Mexican": 8.0, "Thai": 9.0}

        shared, divergent = taste_data.split_preferences(user, compared)

        assert shared == ["Japanese"]
        assert divergent == ["Italian", "Mexican"]

    def test_unrated_cuisine_counts_as_zero(self):
        shared, divergent = taste_data.split_preferences({"Korean": 8.5}, {})

        assert shared == []
        assert divergent == ["Korean"]

    def test_cuisine_averages(self, make_rating):
        history = [
            make_rating("r1", 9, "Japanese"),
            make_rating("r2", 7, "Japanese"),
            make_rating("r3", 5, "Italian"),
            make_rating("r4", 8, None),
        ]

        assert taste_data.cuisine_averages(history) == {"Japanese": 8.0, "Italian": 5.0}


class TestTopCuisines:
    def test_ranked_by_frequency_above_threshold(self, make_rating):
        history = [
            make_rating("r1", 9, "Italian"),
            make_rating("r2", 8, "Japanese"),
            make_rating("r3", 7, "Japanese"),
            make_rating("r4", 6, "Mexican"),
            make_rating("r5", 10, "Thai"),
        ]

        assert taste_data.top_cuisines(history, min_rating=7, limit=2) == ["Japanese", "Italian"]

    def test_empty_history(self):
        assert taste_data.top_cuisines([]) == []
