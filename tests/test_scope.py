import pytest

from housing.core.scope import GlobalScope, SectorScope, narrow, scope_for


def test_global_scope_allows_everything():
    scope = GlobalScope()
    assert scope.allows(None)
    assert scope.allows(1)
    assert scope.allows(99)


@pytest.mark.parametrize("item_sector, allowed", [(3, True), (None, True), (4, False)])
def test_sector_scope(item_sector, allowed):
    assert SectorScope(3).allows(item_sector) is allowed


def test_scope_for_user_sector():
    assert scope_for(None) == GlobalScope()
    assert scope_for(7) == SectorScope(7)


def test_global_caller_can_narrow():
    assert narrow(GlobalScope(), 5) == SectorScope(5)
    assert narrow(GlobalScope(), None) == GlobalScope()


def test_sector_caller_cannot_widen_or_switch():
    assert narrow(SectorScope(2), None) == SectorScope(2)
    assert narrow(SectorScope(2), 9) == SectorScope(2)


def test_query_filter_matches_allows(repo, make_unit, make_sector):
    north = make_sector("N")
    south = make_sector("S")
    make_unit("N-1", sector_id=north.id)
    make_unit("S-1", sector_id=south.id)
    make_unit("X-1")

    scope = SectorScope(north.id)
    codes = [u.code for u in repo.list_units(scope)]

    assert codes == ["N-1", "X-1"]
    assert [u.code for u in repo.list_units(GlobalScope())] == ["N-1", "S-1", "X-1"]
