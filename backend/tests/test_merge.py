from faculty_finder.services.directory.merge import merge_records, normalize_name
from faculty_finder.services.directory.models import Record


def _record(name, **fields):
    return Record(full_name=name, last_name=name.split()[-1] if name.split() else name, **fields)


def test_merge_fills_missing_fields_from_later_duplicates():
    merged = merge_records(
        [
            _record("Jane Doe", email="jane@example.edu"),
            _record("jane doe ", profile_url="https://cis.example.edu/people/jane-doe"),
            _record("JANE DOE", title="Professor"),
        ]
    )
    assert len(merged) == 1
    jane = merged[0]
    assert jane.full_name == "Jane Doe"
    assert jane.email == "jane@example.edu"
    assert jane.profile_url == "https://cis.example.edu/people/jane-doe"
    assert jane.title == "Professor"


def test_merge_never_overwrites_populated_fields_or_research_flag():
    merged = merge_records(
        [
            _record("Jane Doe", email="jane@example.edu", is_research_active=True),
            _record("Jane Doe", email="other@example.edu", title="Emeritus", is_research_active=False),
        ]
    )
    assert merged[0].email == "jane@example.edu"
    assert merged[0].title == "Emeritus"
    assert merged[0].is_research_active is True


def test_merge_drops_empty_and_unknown_keys():
    merged = merge_records([_record(""), _record("   "), _record("Unknown"), _record("Ada Lovelace")])
    assert [record.full_name for record in merged] == ["Ada Lovelace"]


def test_merge_is_idempotent_and_keys_are_unique():
    records = [
        _record("Jane Doe", email="jane@example.edu"),
        _record("John Smith"),
        _record("jane doe", title="Professor"),
        _record("unknown"),
        _record("John Smith", profile_url="https://cis.example.edu/people/john-smith"),
    ]
    once = merge_records(records)
    twice = merge_records(once)
    assert once == twice
    keys = [normalize_name(record.full_name) for record in once]
    assert len(keys) == len(set(keys))
    assert "" not in keys
    assert "unknown" not in keys


def test_merge_does_not_mutate_inputs():
    first = _record("Jane Doe")
    second = _record("Jane Doe", email="jane@example.edu")
    merged = merge_records([first, second])
    assert merged[0].email == "jane@example.edu"
    assert first.email is None
    assert merged[0] is not first


def test_merge_preserves_arrival_order():
    merged = merge_records([_record("Zed Alpha"), _record("Amy Beta"), _record("zed alpha")])
    assert [record.full_name for record in merged] == ["Zed Alpha", "Amy Beta"]
