"""
Tests for CartStore lifecycle
"""
import random
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from poscart.data.database import make_engine, init_db
from poscart.data.models.cart import CartModel
from poscart.domain.enums import CartStatus
from poscart.domain.errors import (
    CartNotFound,
    CartNotActive,
    NotActive,
    NotParked,
    NotCheckoutable,
    NotPendingCheckout,
    PreconditionFailed,
)
from poscart.services.cart_store import CartStore


def active_ids(db):
    return [c.cart_id for c in db.query(CartModel).filter(CartModel.status == "active").all()]


class TestCreateAndRename:
    """Tests for cart creation and renaming."""

    def test_create_cart(self, store):
        """Test a new cart is active with the clock's timestamp."""
        cart = store.create("A")

        assert cart.cart_id > 0
        assert cart.cart_name == "A"
        assert cart.status == CartStatus.ACTIVE.value
        assert cart.created_at == "2024-05-17 10:30:00"

    def test_create_default_name(self, store):
        """Test cart name defaults to empty string."""
        assert store.create().cart_name == ""

    def test_second_create_parks_previous_active(self, store, db):
        """Test create A then create B leaves only B active."""
        a = store.create("A")
        b = store.create("B")

        assert active_ids(db) == [b.cart_id]
        assert store.get_cart(a.cart_id).status == CartStatus.PARKED.value
        assert [c.cart_id for c in store.list_parked()] == [a.cart_id]

    def test_storage_rejects_second_active_row(self, store, db):
        """Test the partial unique index blocks two active carts."""
        store.create("A")

        db.add(CartModel(cart_name="rogue", status="active", created_at="2024-05-17 10:30:00"))
        with pytest.raises(IntegrityError):
            db.flush()
        db.rollback()

    def test_cart_ids_are_not_reused(self, store):
        """Test a deleted cart's id is not handed out again."""
        first = store.create("A")
        store.cancel(first.cart_id)

        assert store.create("B").cart_id > first.cart_id

    def test_rename_any_status(self, store, active_cart):
        """Test rename works for parked carts too."""
        store.park(active_cart.cart_id, "later")

        renamed = store.rename(active_cart.cart_id, "Table 4")

        assert renamed.cart_name == "Table 4"
        assert renamed.status == CartStatus.PARKED.value

    def test_rename_missing_cart(self, store):
        """Test rename of unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.rename(999, "x")


class TestItems:
    """Tests for cart line operations."""

    def test_add_then_zero_quantity_scenario(self, store):
        """Test add one line, then quantity 0 removes it."""
        cart = store.create("A")
        store.add_item(cart.cart_id, product_id=100, quantity=2, price=5.0, purchasing_type="single")

        items = store.list_items(cart.cart_id)
        assert len(items) == 1
        assert items[0].quantity == 2
        assert items[0].price == 5.0

        store.set_item_quantity(cart.cart_id, 100, "single", 0)

        assert store.list_items(cart.cart_id) == []

    def test_add_item_returns_line(self, store, active_cart):
        """Test the inserted line carries all fields."""
        item = store.add_item(
            active_cart.cart_id,
            product_id=7,
            quantity=3,
            price=12.5,
            purchasing_type="bulk",
            scanned_barcode="0001112223334",
            discount=1.5,
        )

        assert item.cart_id == active_cart.cart_id
        assert item.product_id == 7
        assert item.scanned_barcode == "0001112223334"
        assert item.purchasing_type == "bulk"
        assert item.discount == 1.5

    @pytest.mark.parametrize("action", ["park", "checkout"])
    def test_add_item_requires_active_cart(self, store, db, active_cart, action):
        """Test adding to a non-active cart fails and writes nothing."""
        if action == "park":
            store.park(active_cart.cart_id, "held")
        else:
            store.checkout(active_cart.cart_id, "S1", "U1")

        with pytest.raises(CartNotActive) as exc:
            store.add_item(active_cart.cart_id, 100, 1, 5.0, "single")

        assert isinstance(exc.value, PreconditionFailed)
        assert store.list_items(active_cart.cart_id) == []

    def test_add_item_missing_cart(self, store):
        """Test adding to an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.add_item(404, 100, 1, 5.0, "single")

    def test_park_from_other_session_before_insert(self, tmp_path, clock):
        """Test a park committed by another session just before the insert wins."""
        engine = make_engine(f"sqlite:///{tmp_path / 'terminal.db'}")
        init_db(engine)
        Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        till, other = Session(), Session()

        try:
            store = CartStore(till, clock=clock)
            cart_id = store.create("A").cart_id
            insert_line = store.repo.add_item_to_active_cart

            def park_then_insert(*args, **kwargs):
                CartStore(other, clock=clock).park(cart_id, "held")
                return insert_line(*args, **kwargs)

            with patch.object(store.repo, "add_item_to_active_cart", side_effect=park_then_insert):
                with pytest.raises(CartNotActive) as exc:
                    store.add_item(cart_id, 100, 1, 5.0, "single")

            assert exc.value.status == CartStatus.PARKED.value
            assert store.get_cart(cart_id).status == CartStatus.PARKED.value
            assert store.list_items(cart_id) == []
        finally:
            till.close()
            other.close()
            engine.dispose()

    def test_zero_quantity_line(self, store, active_cart):
        """Test quantity 0 is accepted on add."""
        item = store.add_item(active_cart.cart_id, 100, 0, 5.0, "single")

        assert item.quantity == 0
        assert len(store.list_items(active_cart.cart_id)) == 1

    def test_add_item_rejects_bad_input(self, store, active_cart):
        """Test negative quantity and unknown purchasing type are rejected."""
        with pytest.raises(ValueError):
            store.add_item(active_cart.cart_id, 100, -1, 5.0, "single")
        with pytest.raises(ValueError):
            store.add_item(active_cart.cart_id, 100, 1, 5.0, "crate")

    def test_same_key_adds_separate_lines(self, store, active_cart):
        """Test re-adding the same product and type keeps two lines."""
        store.add_item(active_cart.cart_id, 100, 1, 5.0, "single")
        store.add_item(active_cart.cart_id, 100, 2, 5.0, "single")
        store.add_item(active_cart.cart_id, 100, 1, 40.0, "bulk")

        assert len(store.list_items(active_cart.cart_id)) == 3
        assert store.set_item_quantity(active_cart.cart_id, 100, "single", 4) == 2
        assert store.remove_item(active_cart.cart_id, 100, "single") == 2

        remaining = store.list_items(active_cart.cart_id)
        assert [(i.product_id, i.purchasing_type) for i in remaining] == [(100, "bulk")]

    def test_remove_item_is_idempotent(self, store, active_cart):
        """Test removing a missing line returns 0."""
        assert store.remove_item(active_cart.cart_id, 555, "single") == 0

    def test_set_quantity_updates_line(self, store, active_cart):
        """Test quantity update keeps price frozen."""
        store.add_item(active_cart.cart_id, 100, 1, 5.0, "single")

        assert store.set_item_quantity(active_cart.cart_id, 100, "single", 6) == 1

        item = store.list_items(active_cart.cart_id)[0]
        assert item.quantity == 6
        assert item.price == 5.0

    def test_set_quantity_negative(self, store, active_cart):
        """Test negative quantity is rejected."""
        with pytest.raises(ValueError):
            store.set_item_quantity(active_cart.cart_id, 100, "single", -2)

    def test_cart_detail_total(self, store, active_cart):
        """Test total subtracts per-unit discount."""
        store.add_item(active_cart.cart_id, 1, 2, 10.0, "single", discount=1.0)
        store.add_item(active_cart.cart_id, 2, 1, 4.5, "bulk")

        detail = store.get_cart_detail(active_cart.cart_id)

        assert detail["total"] == 22.5
        assert len(detail["items"]) == 2


class TestParkAndActivate:
    """Tests for park/activate transitions."""

    def test_park_active_cart(self, store, active_cart):
        """Test park sets status and name."""
        parked = store.park(active_cart.cart_id, "Mrs. Lan")

        assert parked.status == CartStatus.PARKED.value
        assert parked.cart_name == "Mrs. Lan"
        assert store.list_active() is None

    def test_park_non_active(self, store, active_cart):
        """Test parking a parked cart raises NotActive and keeps its name."""
        store.park(active_cart.cart_id, "first")

        with pytest.raises(NotActive):
            store.park(active_cart.cart_id, "second")

        assert store.get_cart(active_cart.cart_id).cart_name == "first"

    def test_park_missing(self, store):
        """Test parking an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.park(999, "x")

    def test_activate_swaps_active_cart(self, store, db):
        """Test activating a parked cart parks the current active one."""
        a = store.create("A")
        b = store.create("B")

        activated = store.activate(a.cart_id)

        assert activated.status == CartStatus.ACTIVE.value
        assert active_ids(db) == [a.cart_id]
        assert store.get_cart(b.cart_id).status == CartStatus.PARKED.value

    def test_activate_non_parked_rolls_back(self, store, db):
        """Test failed activate leaves the active cart active."""
        a = store.create("A")
        store.checkout(a.cart_id, "S1", "U1")
        b = store.create("B")

        with pytest.raises(NotParked):
            store.activate(a.cart_id)

        assert active_ids(db) == [b.cart_id]
        assert store.get_cart(a.cart_id).status == CartStatus.PENDING_CHECKOUT.value

    def test_activate_missing(self, store):
        """Test activating an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.activate(12345)

    def test_single_active_under_random_operations(self, store, db):
        """Test at most one active cart after any sequence of operations."""
        rng = random.Random(20240517)
        ops = ["create", "park", "activate", "checkout", "pay", "cancel"]

        for step in range(200):
            op = rng.choice(ops)
            carts = db.query(CartModel).all()
            target = rng.choice(carts).cart_id if carts else None
            try:
                if op == "create" or target is None:
                    store.create(f"c{step}")
                elif op == "park":
                    store.park(target, f"p{step}")
                elif op == "activate":
                    store.activate(target)
                elif op == "checkout":
                    store.checkout(target, "S1", "U1")
                elif op == "pay":
                    store.confirm_payment(target)
                else:
                    store.cancel(target)
            except PreconditionFailed:
                pass

            assert len(active_ids(db)) <= 1


class TestTermination:
    """Tests for payment and cancellation."""

    def test_confirm_payment_deletes_cart_and_items(self, store, db, active_cart):
        """Test processed cart leaves no rows behind."""
        store.add_item(active_cart.cart_id, 100, 2, 5.0, "single")
        store.checkout(active_cart.cart_id, "S1", "U1")

        store.confirm_payment(active_cart.cart_id)

        with pytest.raises(CartNotFound):
            store.get_cart(active_cart.cart_id)
        assert store.list_items(active_cart.cart_id) == []

    def test_confirm_payment_requires_checkout(self, store, active_cart):
        """Test paying an active cart raises NotPendingCheckout."""
        store.add_item(active_cart.cart_id, 100, 2, 5.0, "single")

        with pytest.raises(NotPendingCheckout):
            store.confirm_payment(active_cart.cart_id)

        assert store.get_cart(active_cart.cart_id).status == CartStatus.ACTIVE.value
        assert len(store.list_items(active_cart.cart_id)) == 1

    def test_confirm_payment_missing(self, store):
        """Test paying an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.confirm_payment(77)

    @pytest.mark.parametrize("prepare", ["active", "parked", "pending_checkout"])
    def test_cancel_from_any_status(self, store, active_cart, prepare):
        """Test cancel deletes cart and items whatever the status."""
        store.add_item(active_cart.cart_id, 100, 2, 5.0, "single")
        if prepare == "parked":
            store.park(active_cart.cart_id, "x")
        elif prepare == "pending_checkout":
            store.checkout(active_cart.cart_id, "S1", "U1")

        store.cancel(active_cart.cart_id)

        with pytest.raises(CartNotFound):
            store.get_cart(active_cart.cart_id)
        assert store.list_items(active_cart.cart_id) == []

    def test_cancel_missing(self, store):
        """Test cancelling an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.cancel(404)

    def test_checkout_twice(self, store, active_cart):
        """Test a pending cart cannot be checked out again."""
        store.checkout(active_cart.cart_id, "S1", "U1")

        with pytest.raises(NotCheckoutable):
            store.checkout(active_cart.cart_id, "S1", "U1")

    def test_checkout_missing(self, store):
        """Test checkout of an unknown cart raises CartNotFound."""
        with pytest.raises(CartNotFound):
            store.checkout(404, "S1", "U1")
