from decimal import Decimal

import pytest

from storefront.domain.errors import Conflict, Forbidden, NotFound, ValidationError
from storefront.domain.schemas import ProductCreate, VariantIn, VariantUpdate
from storefront.services.cart_service import CartService
from storefront.services.product_service import ProductService


def _payload(*variants, **kwargs):
    return ProductCreate(
        name=kwargs.get("name", "Linen Shirt"),
        price=Decimal(kwargs.get("price", "899.00")),
        category="shirts",
        brand="Acme",
        variants=list(variants),
    )


def test_create_product_syncs_stock_and_colors(db, admin):
    svc = ProductService(db)
    product = svc.create_product(
        admin,
        _payload(
            VariantIn(size="M", color="White", stock=3, sku="LS-M-W"),
            VariantIn(size="L", color="Blue", stock=4, sku="LS-L-B"),
            VariantIn(size="S", color="White", stock=1, sku="LS-S-W"),
        ),
    )

    assert product.stock == 8
    assert product.colors == ["White", "Blue"]
    assert len(product.variants) == 3


def test_create_product_rejects_duplicate_sku_in_payload(db, admin):
    with pytest.raises(ValidationError):
        ProductService(db).create_product(
            admin,
            _payload(
                VariantIn(size="M", color="White", stock=3, sku="DUP"),
                VariantIn(size="L", color="White", stock=3, sku="DUP"),
            ),
        )


def test_create_product_rejects_sku_already_in_db(db, admin, make_product):
    make_product()  # registers SKU-1-0

    with pytest.raises(ValidationError):
        ProductService(db).create_product(
            admin, _payload(VariantIn(size="M", color="Red", stock=1, sku="SKU-1-0"))
        )


def test_regular_user_cannot_create_products(db, user):
    with pytest.raises(Forbidden):
        ProductService(db).create_product(user, _payload())


def test_variant_writes_keep_aggregates_in_sync(db, admin, make_product):
    product = make_product(variants=[("M", "Black", 5)])
    svc = ProductService(db)

    added = svc.add_variant(admin, product.id, VariantIn(size="L", color="Olive", stock=2, sku="NEW-1"))
    db.refresh(product)
    assert product.stock == 7
    assert product.colors == ["Black", "Olive"]

    svc.update_variant(admin, added.id, VariantUpdate(stock=10))
    db.refresh(product)
    assert product.stock == 15

    svc.remove_variant(admin, added.id)
    db.refresh(product)
    assert product.stock == 5
    assert product.colors == ["Black"]


def test_add_variant_errors(db, admin, make_product):
    product = make_product()
    svc = ProductService(db)

    with pytest.raises(NotFound):
        svc.add_variant(admin, 999, VariantIn(size="M", color="Red", stock=1, sku="X-1"))

    with pytest.raises(Conflict):
        svc.add_variant(admin, product.id, VariantIn(size="L", color="Red", stock=1, sku="SKU-1-0"))


def test_archived_product_is_hidden_from_reads(db, admin, make_product):
    visible = make_product(name="Visible Tee")
    hidden = make_product(name="Hidden Tee")
    svc = ProductService(db)

    svc.archive_product(admin, hidden.id)

    page = svc.list_products()
    assert [p.id for p in page["data"]] == [visible.id]
    assert page["total"] == 1
    assert [p.id for p in svc.search("tee")] == [visible.id]
    with pytest.raises(NotFound):
        svc.get_product(hidden.id)
    assert svc.get_product(hidden.id, include_archived=True).is_archived


def test_list_products_filters_and_sorts(db, make_product):
    make_product(price="300.00", brand="Acme", category="shirts")
    make_product(price="100.00", brand="Zed", category="shirts")
    make_product(price="200.00", brand="Acme", category="jeans")
    svc = ProductService(db)

    prices = [p.price for p in svc.list_products(sort="price_asc")["data"]]
    assert prices == [Decimal("100.00"), Decimal("200.00"), Decimal("300.00")]

    acme_shirts = svc.list_products(brand="Acme", category="shirts")
    assert acme_shirts["total"] == 1

    cheap = svc.list_products(max_price=Decimal("200"))
    assert cheap["total"] == 2

    assert svc.brands() == ["Acme", "Zed"]
    assert svc.categories() == ["jeans", "shirts"]


def test_trending_only_lists_flagged_products(db, make_product):
    hot = make_product(is_trending=True)
    make_product()

    assert [p.id for p in ProductService(db).trending()] == [hot.id]


def test_create_product_rejects_repeated_size_and_color(db, admin):
    with pytest.raises(ValidationError):
        ProductService(db).create_product(
            admin,
            _payload(
                VariantIn(size="M", color="Black", stock=2, sku="TEE-A"),
                VariantIn(size="M", color="Black", stock=3, sku="TEE-B"),
            ),
        )
    assert ProductService(db).list_products()["total"] == 0


def test_variant_size_and_color_stay_unique_per_product(db, admin, make_product):
    product = make_product(variants=[("M", "Black", 5), ("L", "Black", 2)])
    large = product.variants[1]
    svc = ProductService(db)

    with pytest.raises(Conflict):
        svc.add_variant(admin, product.id, VariantIn(size="M", color="Black", stock=1, sku="TEE-NEW"))
    with pytest.raises(Conflict):
        svc.update_variant(admin, large.id, VariantUpdate(size="M"))

    db.refresh(large)
    assert large.size == "L"
    # the same pair on another product is fine
    other = make_product(variants=[("S", "White", 1)])
    svc.add_variant(admin, other.id, VariantIn(size="M", color="Black", stock=1, sku="OTHER-M"))


def test_cart_resolves_single_variant_after_catalog_writes(db, admin, user, make_product):
    product = make_product(variants=[("M", "Black", 5)])
    with pytest.raises(Conflict):
        ProductService(db).add_variant(
            admin, product.id, VariantIn(size="M", color="Black", stock=4, sku="TEE-DUP")
        )

    line = CartService(db).add_or_increment(user, product.id, 1, "M", "Black")
    assert line["quantity"] == 1


def test_update_variant_ignores_explicit_nulls(db, admin, make_product):
    product = make_product(variants=[("M", "Black", 5)])
    variant = product.variants[0]

    updated = ProductService(db).update_variant(
        admin, variant.id, VariantUpdate(stock=None, size=None, color=None)
    )

    assert updated.stock == 5
    assert updated.size == "M"
    db.refresh(product)
    assert product.stock == 5
