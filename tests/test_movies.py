from datetime import datetime

import pytest

from app.models.movie import Movie
from app.models.review import Review
from app.schemas.movie import MovieCreate
from app.services.movie_service import MovieService, validate_movie_fields
from app.utils.exceptions import ValidationError

from conftest import create_movie


@pytest.fixture
def public_movies(db_session):
    return [
        create_movie(db_session, "Heat", "Action", 1995, 8.3),
        create_movie(db_session, "Alien", "Horror", 1979, 8.5),
        create_movie(db_session, "Die Hard", "action", 1988, 8.2),
        create_movie(db_session, "Speed", "Action", 1994, 7.2),
    ]


@pytest.fixture
def store_reads(monkeypatch):
    """Count public listing queries that reach the database."""
    calls = []
    original = MovieService._query_public

    def counting(db, filters):
        calls.append(filters)
        return original(db, filters)

    monkeypatch.setattr(MovieService, "_query_public", staticmethod(counting))
    return calls


def titles(response):
    return [m["title"] for m in response.json()]


# ============================================
# Public listing
# ============================================

class TestPublicListing:

    def test_lists_only_public_movies_by_id(self, client, db_session, alice, public_movies):
        create_movie(db_session, "Secret", "Action", 2000, 9.0, is_public=False, owner=alice)

        response = client.get("/api/movies/public")

        assert response.status_code == 200
        assert titles(response) == ["Heat", "Alien", "Die Hard", "Speed"]

    def test_genre_filter_is_case_insensitive(self, client, public_movies):
        response = client.get("/api/movies/public", params={"genre": "ACTION"})

        assert titles(response) == ["Heat", "Die Hard", "Speed"]

    def test_year_and_rating_filters(self, client, public_movies):
        assert titles(client.get("/api/movies/public", params={"year": 1979})) == ["Alien"]
        response = client.get("/api/movies/public", params={"minRating": 8.0, "maxRating": 8.3})
        assert titles(response) == ["Heat", "Die Hard"]

    @pytest.mark.parametrize("sort_by,expected", [
        ("title", ["Alien", "Die Hard", "Heat", "Speed"]),
        ("year", ["Alien", "Die Hard", "Speed", "Heat"]),
        ("rating", ["Alien", "Heat", "Die Hard", "Speed"]),
        ("Rating", ["Alien", "Heat", "Die Hard", "Speed"]),
        ("id", ["Heat", "Alien", "Die Hard", "Speed"]),
    ])
    def test_sorting(self, client, public_movies, sort_by, expected):
        assert titles(client.get("/api/movies/public", params={"sortBy": sort_by})) == expected

    def test_unknown_sort_is_rejected(self, client, public_movies):
        assert client.get("/api/movies/public", params={"sortBy": "popularity"}).status_code == 400

    def test_out_of_range_rating_filter_is_rejected(self, client):
        assert client.get("/api/movies/public", params={"minRating": 11}).status_code == 400

    def test_repeated_query_is_served_from_cache(self, client, cache, public_movies, store_reads):
        params = {"genre": "Action", "sortBy": "rating"}

        first = client.get("/api/movies/public", params=params)
        second = client.get("/api/movies/public", params=params)

        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert second.json() == first.json()
        assert len(store_reads) == 1
        assert cache.get_stats()["hits"] == 1

    def test_different_parameters_are_cached_separately(self, client, public_movies, store_reads):
        client.get("/api/movies/public", params={"genre": "Action"})
        response = client.get("/api/movies/public", params={"genre": "Action", "year": 1995})

        assert response.headers["X-Cache"] == "MISS"
        assert titles(response) == ["Heat"]
        assert len(store_reads) == 2

    def test_top_rated_movie_invalidates_cached_listing(self, client, admin_headers, public_movies):
        params = {"genre": "Action", "sortBy": "rating"}
        client.get("/api/movies/public", params=params)
        assert client.get("/api/movies/public", params=params).headers["X-Cache"] == "HIT"

        created = client.post("/api/movies/top", headers=admin_headers, json={
            "title": "Mad Max: Fury Road", "genre": "Action", "year": 2015, "rating": 8.9,
        })
        assert created.status_code == 201

        response = client.get("/api/movies/public", params=params)
        assert response.headers["X-Cache"] == "MISS"
        assert titles(response) == ["Mad Max: Fury Road", "Heat", "Die Hard", "Speed"]

    def test_listing_works_without_redis(self, client, cache, public_movies):
        cache._client = None

        first = client.get("/api/movies/public")
        second = client.get("/api/movies/public")

        assert first.status_code == second.status_code == 200
        assert second.headers["X-Cache"] == "MISS"


# ============================================
# Top-rated movies
# ============================================

class TestTopRated:

    def test_admin_creates_public_top_rated_movie(self, client, db_session, admin_headers):
        response = client.post("/api/movies/top", headers=admin_headers, json={
            "title": "Seven Samurai", "genre": "Drama", "year": 1954, "rating": 8.6,
            "is_public": False,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["is_public"] is True
        assert body["is_top_rated"] is True
        assert body["user_id"] is None

    def test_user_role_is_forbidden(self, client, db_session, alice_headers):
        response = client.post("/api/movies/top", headers=alice_headers, json={
            "title": "Seven Samurai", "genre": "Drama", "year": 1954, "rating": 8.6,
        })

        assert response.status_code == 403
        assert db_session.query(Movie).count() == 0

    def test_anonymous_is_unauthorized(self, client):
        response = client.post("/api/movies/top", json={
            "title": "Seven Samurai", "genre": "Drama", "year": 1954, "rating": 8.6,
        })

        assert response.status_code == 401

    def test_nan_rating_is_rejected(self, client, db_session, admin_headers):
        response = client.post("/api/movies/top", headers=admin_headers, json={
            "title": "Void", "genre": "Drama", "year": 2000, "rating": "nan",
        })

        assert response.status_code == 400
        assert db_session.query(Movie).count() == 0

    def test_admin_cannot_edit_or_delete_top_rated_movie(self, client, admin_headers):
        created = client.post("/api/movies/top", headers=admin_headers, json={
            "title": "Seven Samurai", "genre": "Drama", "year": 1954, "rating": 8.6,
        }).json()

        update = client.put(f"/api/movies/{created['id']}", headers=admin_headers, json={
            "title": "Seven Samurai", "genre": "Drama", "year": 1954, "rating": 9.0,
        })
        delete = client.delete(f"/api/movies/{created['id']}", headers=admin_headers)

        assert update.status_code == 403
        assert delete.status_code == 403


# ============================================
# Private movies
# ============================================

class TestPrivateMovies:

    def test_create_private_movie_owned_by_caller(self, client, alice, alice_headers):
        response = client.post("/api/movies", headers=alice_headers, json={
            "title": "Home Video", "genre": "Documentary", "year": 2020, "rating": 6.0,
            "is_public": True, "is_top_rated": True, "user_id": 999,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["is_public"] is False
        assert body["is_top_rated"] is False
        assert body["user_id"] == alice.id

    def test_create_requires_authentication(self, client):
        response = client.post("/api/movies", json={
            "title": "Home Video", "genre": "Documentary", "year": 2020, "rating": 6.0,
        })

        assert response.status_code == 401

    def test_duplicate_title_for_same_owner_conflicts(self, client, db_session, alice, alice_headers, bob_headers):
        payload = {"title": "Home Video", "genre": "Documentary", "year": 2020, "rating": 6.0}
        assert client.post("/api/movies", headers=alice_headers, json=payload).status_code == 201

        duplicate = dict(payload, title="HOME video")
        assert client.post("/api/movies", headers=alice_headers, json=duplicate).status_code == 409
        assert client.post("/api/movies", headers=bob_headers, json=duplicate).status_code == 201
        assert db_session.query(Movie).count() == 2

    @pytest.mark.parametrize("payload", [
        {"title": "Bad", "genre": "Drama", "year": 2000, "rating": 10.1},
        {"title": "Bad", "genre": "Drama", "year": 2000, "rating": -0.5},
        {"title": "Bad", "genre": "Drama", "year": 1700, "rating": 5},
        {"title": "Bad", "genre": "Drama", "year": 1800, "rating": 5},
        {"title": "Bad", "genre": "Drama", "year": datetime.now().year + 1, "rating": 5},
        {"title": "  ", "genre": "Drama", "year": 2000, "rating": 5},
        {"title": "Bad", "genre": "", "year": 2000, "rating": 5},
        {"title": "Bad", "genre": "Drama", "year": 2000, "rating": "nan"},
        {"title": "Bad", "genre": "Drama", "year": 2000, "rating": "inf"},
    ])
    def test_invalid_movie_is_rejected_before_persistence(self, client, db_session, alice_headers, payload):
        response = client.post("/api/movies", headers=alice_headers, json=payload)

        assert response.status_code == 400
        assert db_session.query(Movie).count() == 0

    def test_nan_literal_rating_is_rejected(self, client, db_session, alice_headers):
        body = '{"title": "Void", "genre": "Drama", "year": 2000, "rating": NaN}'

        response = client.post("/api/movies", headers={**alice_headers, "Content-Type": "application/json"}, content=body)

        assert response.status_code == 400
        assert db_session.query(Movie).count() == 0

    def test_non_finite_rating_fails_service_validation(self):
        data = MovieCreate.model_construct(title="Void", genre="Drama", year=2000, rating=float("nan"))

        with pytest.raises(ValidationError):
            validate_movie_fields(data)

    def test_boundary_values_are_accepted(self, client, alice_headers):
        response = client.post("/api/movies", headers=alice_headers, json={
            "title": "Edge", "genre": "Drama", "year": datetime.now().year, "rating": 10,
        })
        assert response.status_code == 201

        response = client.post("/api/movies", headers=alice_headers, json={
            "title": "Oldest", "genre": "Drama", "year": 1801, "rating": 0,
        })
        assert response.status_code == 201

    def test_private_list_contains_only_own_movies(self, client, db_session, alice, bob, alice_headers):
        create_movie(db_session, "Mine", "Drama", 2000, 5.0, is_public=False, owner=alice)
        create_movie(db_session, "Theirs", "Drama", 2000, 5.0, is_public=False, owner=bob)
        create_movie(db_session, "Everyone's", "Drama", 2000, 5.0)

        response = client.get("/api/movies/private", headers=alice_headers)

        assert response.status_code == 200
        assert titles(response) == ["Mine"]

    def test_private_list_requires_authentication(self, client):
        assert client.get("/api/movies/private").status_code == 401


# ============================================
# Single movie access
# ============================================

class TestMovieAccess:

    def test_public_movie_is_readable_anonymously(self, client, public_movies):
        response = client.get(f"/api/movies/{public_movies[0].id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Heat"

    def test_private_movie_visible_only_to_owner(self, client, db_session, alice, alice_headers,
                                                 bob_headers, admin_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)

        assert client.get(f"/api/movies/{secret.id}", headers=alice_headers).status_code == 200
        assert client.get(f"/api/movies/{secret.id}", headers=bob_headers).status_code == 403
        assert client.get(f"/api/movies/{secret.id}", headers=admin_headers).status_code == 403
        assert client.get(f"/api/movies/{secret.id}").status_code == 403

    def test_missing_movie(self, client, alice_headers):
        response = client.get("/api/movies/12345", headers=alice_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Movie with Id = 12345 not found."

    def test_invalid_token_is_rejected_even_for_public_movie(self, client, public_movies):
        response = client.get(f"/api/movies/{public_movies[0].id}", headers={"Authorization": "Bearer junk"})

        assert response.status_code == 401

    def test_owner_updates_private_movie(self, client, db_session, alice, alice_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)

        response = client.put(f"/api/movies/{secret.id}", headers=alice_headers, json={
            "title": "Secret (Director's Cut)", "genre": "Drama", "year": 2001, "rating": 6.5,
        })

        assert response.status_code == 200
        assert response.json()["title"] == "Secret (Director's Cut)"
        assert response.json()["is_public"] is False

    def test_update_is_validated(self, client, db_session, alice, alice_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)

        response = client.put(f"/api/movies/{secret.id}", headers=alice_headers, json={
            "title": "Secret", "genre": "Drama", "year": 1700, "rating": 5.0,
        })

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Movie, secret.id).year == 2000

    def test_update_with_nan_rating_is_rejected(self, client, db_session, alice, alice_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)

        response = client.put(f"/api/movies/{secret.id}", headers=alice_headers, json={
            "title": "Secret", "genre": "Drama", "year": 2000, "rating": "nan",
        })

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Movie, secret.id).rating == 5.0

    def test_update_to_duplicate_title_conflicts(self, client, db_session, alice, alice_headers):
        create_movie(db_session, "First", "Drama", 2000, 5.0, is_public=False, owner=alice)
        second = create_movie(db_session, "Second", "Drama", 2000, 5.0, is_public=False, owner=alice)

        response = client.put(f"/api/movies/{second.id}", headers=alice_headers, json={
            "title": "first", "genre": "Drama", "year": 2000, "rating": 5.0,
        })

        assert response.status_code == 409

    def test_non_owner_cannot_update_or_delete(self, client, db_session, alice, bob_headers, admin_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)
        payload = {"title": "Hijacked", "genre": "Drama", "year": 2000, "rating": 1.0}

        for headers in (bob_headers, admin_headers):
            assert client.put(f"/api/movies/{secret.id}", headers=headers, json=payload).status_code == 403
            assert client.delete(f"/api/movies/{secret.id}", headers=headers).status_code == 403

        db_session.expire_all()
        assert db_session.get(Movie, secret.id).title == "Secret"

    def test_update_missing_movie(self, client, alice_headers):
        response = client.put("/api/movies/999", headers=alice_headers, json={
            "title": "x", "genre": "y", "year": 2000, "rating": 1.0,
        })

        assert response.status_code == 404

    def test_owner_deletes_movie_and_its_reviews(self, client, db_session, alice, bob, alice_headers):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)
        db_session.add(Review(rating=7, comment="ok", user_id=bob.id, movie_id=secret.id))
        db_session.commit()

        response = client.delete(f"/api/movies/{secret.id}", headers=alice_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Movie, secret.id) is None
        assert db_session.query(Review).count() == 0

    def test_delete_requires_authentication(self, client, db_session, alice):
        secret = create_movie(db_session, "Secret", "Drama", 2000, 5.0, is_public=False, owner=alice)

        assert client.delete(f"/api/movies/{secret.id}").status_code == 401
