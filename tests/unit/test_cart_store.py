from decimal import Decimal

from storefront.domain.cart_store import CartLine, CartStore, merge_items
from storefront.services.session_events import LoggedIn, LoggedOut, SessionEventBus


def _line(product="p1", size="9", color="black", qty=1, price="10.00", variant="v1") -> CartLine:
    return CartLine(
        product_id=product,
        product_variant_id=variant,
        name="Shoe",
        price=Decimal(price),
        image="",
        size=size,
        color=color,
        quantity=qty,
    )


def test_line_identity_is_product_size_color():
    assert _line().id == "p1-9-black"


def test_add_same_line_sums_quantity():
    store = CartStore()
    store.add_item(_line(qty=1))
    store.add_item(_line(qty=2))
    assert len(store.items) == 1
    assert store.total_items() == 3
    assert store.total_price() == Decimal("30.00")


def test_update_quantity_to_zero_removes():
    store = CartStore(items=[_line(), _line(size="10")])
    store.update_quantity("p1-9-black", 0)
    assert [i.id for i in store.items] == ["p1-10-black"]


def test_merge_sums_shared_keys_and_keeps_disjoint():
    server = [_line(qty=2), _line(size="10", qty=1)]
    guest = [_line(qty=3), _line(color="white", qty=1)]
    merged = {i.id: i.quantity for i in merge_items(server, guest)}
    assert merged == {"p1-9-black": 5, "p1-10-black": 1, "p1-9-white": 1}


def test_json_round_trip_while_anonymous():
    store = CartStore(items=[_line(qty=2)])
    restored = CartStore.from_json(store.to_json())
    assert restored.items == store.items


def test_mutations_are_mirrored_once_authenticated():
    calls = []

    def mirror(items, action):
        calls.append((action, [i.id for i in items]))
        return items

    bus = SessionEventBus()
    store = CartStore(mirror=mirror)
    store.subscribe(bus)

    store.add_item(_line())
    assert calls == []

    bus.publish(LoggedIn(user_id="u1"))
    assert calls == [("fetch", []), ("merge", ["p1-9-black"])]

    store.add_item(_line(size="10"))
    assert calls[-1] == ("sync", ["p1-9-black", "p1-10-black"])


def test_server_answer_replaces_local_items():
    server_state = [_line(qty=7)]
    store = CartStore(mirror=lambda items, action: server_state)
    bus = SessionEventBus()
    store.subscribe(bus)
    bus.publish(LoggedIn(user_id="u1"))

    store.add_item(_line())
    assert store.items == server_state


def test_mirror_failure_keeps_local_cart():
    def broken(items, action):
        raise ConnectionError("offline")

    store = CartStore(mirror=broken)
    bus = SessionEventBus()
    store.subscribe(bus)
    bus.publish(LoggedIn(user_id="u1"))

    store.add_item(_line())
    assert [i.id for i in store.items] == ["p1-9-black"]


def test_logout_clears_local_state():
    bus = SessionEventBus()
    store = CartStore(items=[_line()])
    store.subscribe(bus)
    bus.publish(LoggedIn(user_id="u1"))
    bus.publish(LoggedOut(user_id="u1"))
    assert store.items == []
    assert store.authenticated is False


def test_login_with_empty_guest_cart_loads_server_cart():
    server = [_line(qty=2), _line(color="white")]
    calls = []

    def mirror(items, action):
        calls.append(action)
        return server

    bus = SessionEventBus()
    store = CartStore(mirror=mirror)
    store.subscribe(bus)
    bus.publish(LoggedIn(user_id="u1"))

    assert calls == ["fetch"]
    assert store.items == server


def test_login_merges_guest_lines_into_fetched_cart():
    server = [_line(qty=2)]
    pushed = {}

    def mirror(items, action):
        pushed[action] = list(items)
        if action == "merge":
            return merge_items(server, items)
        return server

    bus = SessionEventBus()
    store = CartStore(mirror=mirror, items=[_line(qty=1), _line(size="10")])
    store.subscribe(bus)
    bus.publish(LoggedIn(user_id="u1"))

    assert pushed["fetch"] == []
    assert [i.id for i in pushed["merge"]] == ["p1-9-black", "p1-10-black"]
    assert {i.id: i.quantity for i in store.items} == {"p1-9-black": 3, "p1-10-black": 1}
