from reelsync.models import (
    Episode,
    Images,
    ImageSet,
    MovieRecord,
    Rating,
    ShowRecord,
    TitleRef,
    record_from_payload,
)


def test_rating_from_raw_derives_percentage_and_stars():
    rating = Rating.from_raw(7.46, votes=1200, watching=3)

    assert rating.percentage == 75
    assert rating.stars == 3.75
    assert rating.votes == 1200
    assert rating.watching == 3


def test_genres_default_to_unknown():
    movie = MovieRecord(id="tt0000001", tmdb_id=1, title="Example", slug="example", genres=[])

    assert movie.genres == ["unknown"]


def test_images_report_missing_slots():
    images = Images(poster=ImageSet.from_url("https://img.example.com/p.jpg"))

    assert images.missing() == ["banner", "backdrop", "logo"]
    assert not images.is_complete()


def test_show_counts_distinct_seasons():
    show = ShowRecord(
        id="tt0000002",
        tmdb_id=2,
        tvdb_id=3,
        title="Example Show",
        slug="example-show",
        episodes=[
            Episode(season=1, number=1),
            Episode(season=1, number=2),
            Episode(season=3, number=1),
        ],
    )

    assert show.count_seasons() == 2


def test_record_from_payload_selects_the_content_type():
    show = ShowRecord(id="tt0000002", tmdb_id=2, tvdb_id=3, title="Show", slug="show")
    movie = MovieRecord(id="tt0000001", tmdb_id=1, title="Movie", slug="movie")

    assert isinstance(record_from_payload(show.model_dump(mode="json")), ShowRecord)
    assert isinstance(record_from_payload(movie.model_dump(mode="json")), MovieRecord)


def test_title_ref_accepts_json_episode_buckets():
    title = TitleRef.model_validate(
        {
            "slug": "example-show",
            "content_type": "show",
            "episodes": {
                "1": {"2": {"720p": {"quality": "720p", "url": "magnet:?xt=1", "seeds": 4}}}
            },
        }
    )

    assert title.episodes[1][2]["720p"].seeds == 4


def test_title_ref_normalises_scraped_slugs():
    assert TitleRef(slug="Arrival 2016", content_type="movie").slug == "arrival-2016"
