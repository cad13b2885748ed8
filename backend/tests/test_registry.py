from bossraid.services.raid import RoomRegistry


def test_get_or_create_is_lazy_and_stable():
    registry = RoomRegistry()
    assert registry.get('ABCD') is None
    room, created = registry.get_or_create('ABCD', 'a')
    assert created
    assert room.host_id == 'a'
    again, created = registry.get_or_create('ABCD', 'b')
    assert again is room
    assert not created
    assert len(registry) == 1


def test_closed_room_is_replaced():
    registry = RoomRegistry()
    room, _ = registry.get_or_create('ABCD', 'a')
    room.closed = True
    fresh, created = registry.get_or_create('ABCD', 'b')
    assert created
    assert fresh is not room
    # discarding the stale room must not drop its replacement
    assert not registry.discard(room)
    assert registry.get('ABCD') is fresh
    assert registry.discard(fresh)
    assert 'ABCD' not in registry


def test_membership_index():
    registry = RoomRegistry()
    assert registry.claim('sid1', 'ABCD') is None
    assert registry.claim('sid1', 'WXYZ') == 'ABCD'
    assert registry.room_code_for('sid1') == 'ABCD'
    assert registry.release('sid1') == 'ABCD'
    assert registry.release('sid1') is None
    assert registry.room_code_for('sid1') is None
