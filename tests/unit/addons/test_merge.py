from __future__ import annotations

from addonhub.core.addons.merge import deduplicate, merge_addons
from tests.unit.addons.fakes import make_addon


def test_compatible_entry_beats_newer_incompatible() -> None:
    old = make_addon("a", version="1.0.0")
    new = make_addon("a", version="2.0.0", compatible=False)

    result = deduplicate([new, old])

    assert result == [old]


def test_newer_version_wins() -> None:
    result = deduplicate([make_addon("a", "1.0.0"), make_addon("a", "1.2.0"), make_addon("a", "1.1.0")])
    assert [a.version for a in result] == ["1.2.0"]


def test_unparseable_versions_keep_first_entry() -> None:
    first = make_addon("a", "nightly")
    second = make_addon("a", "2.0.0")
    assert deduplicate([first, second]) == [first]


def test_winner_takes_position_of_first_occurrence() -> None:
    result = deduplicate([
        make_addon("a", "1.0.0"),
        make_addon("b", "1.0.0"),
        make_addon("a", "3.0.0"),
        make_addon("c", "1.0.0"),
    ])
    assert [(a.id, a.version) for a in result] == [("a", "3.0.0"), ("b", "1.0.0"), ("c", "1.0.0")]


def test_every_uid_appears_once() -> None:
    addons = [make_addon(name, version) for name in "abc" for version in ("1.0.0", "2.0.0.M1", "2.0.0")]
    result = deduplicate(addons)
    uids = [a.uid for a in result]
    assert len(uids) == len(set(uids)) == 3
    assert {a.version for a in result} == {"2.0.0"}


def test_local_entry_shadows_remote_entry() -> None:
    local = [make_addon("a", "1.0.0").with_installed(True)]
    remote = [make_addon("a", "9.0.0"), make_addon("b", "1.0.0")]

    result = merge_addons(local, remote, include_incompatible=False)

    assert [(a.id, a.version, a.installed) for a in result] == [("a", "1.0.0", True), ("b", "1.0.0", False)]


def test_incompatible_entries_filtered_unless_requested() -> None:
    remote = [make_addon("x", compatible=False), make_addon("y")]
    local = [make_addon("z", compatible=False).with_installed(True)]

    assert [a.id for a in merge_addons(local, remote, include_incompatible=False)] == ["z", "y"]
    assert [a.id for a in merge_addons(local, remote, include_incompatible=True)] == ["z", "x", "y"]


def test_remote_entries_annotated_with_installed_state() -> None:
    remote = [make_addon("a"), make_addon("b")]
    result = merge_addons([], remote, include_incompatible=False, is_installed=lambda uid: uid.endswith(":a"))
    assert [a.installed for a in result] == [True, False]
