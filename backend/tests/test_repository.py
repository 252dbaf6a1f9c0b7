import uuid

import pytest

from core.adjustments import ItemEditSession, adjust_quantity
from core.errors import GatewayError, NotFound
from core.storage import DatabaseImageStore


async def test_categories_come_back_in_creation_order(repo):
    for name in ("Gas Stove Parts", "Mixer Parts", "Electrical"):
        await repo.create_category(name, "📦")
    assert [c.name for c in await repo.list_categories()] == ["Gas Stove Parts", "Mixer Parts", "Electrical"]


async def test_create_item_defaults_price_and_joins_category(repo, category):
    created = await repo.create_item(category.id, "Burner Head", 3, 5)
    item = await repo.get_item(created.id)

    assert item.price == 0
    assert item.category_name == "Gas Stove Parts"
    assert item.category_icon == "🔥"
    assert item.image_url is None


async def test_items_listed_in_creation_order(repo, category):
    for name in ("a", "b", "c"):
        await repo.create_item(category.id, name, 1, 1)
    assert [i.name for i in await repo.list_items_by_category(category.id)] == ["a", "b", "c"]


async def test_get_missing_item_raises_not_found(repo):
    with pytest.raises(NotFound):
        await repo.get_item(uuid.uuid4())


async def test_create_item_in_missing_category_writes_nothing(repo):
    with pytest.raises(NotFound):
        await repo.create_item(uuid.uuid4(), "Knob", 1, 1)
    assert await repo.list_items() == []


async def test_gateway_rejection_becomes_gateway_error(repo, category):
    # the rollback expires loaded rows, so hold on to the plain id
    category_id = category.id
    with pytest.raises(GatewayError) as exc:
        await repo.create_item(category_id, "Knob", -1, 0)
    assert exc.value.cause is not None
    assert await repo.list_items_by_category(category_id) == []


async def test_update_item_is_partial(repo, category):
    created = await repo.create_item(category.id, "Knob", 4, 2)
    await repo.update_item(created.id, {"min_stock": 6})

    item = await repo.get_item(created.id)
    assert (item.name, item.quantity, item.min_stock) == ("Knob", 4, 6)


async def test_update_missing_item_raises_not_found(repo):
    with pytest.raises(NotFound):
        await repo.update_item(uuid.uuid4(), {"name": "x"})


async def test_increment_quantity_is_clamped(repo, category):
    created = await repo.create_item(category.id, "Knob", 5, 2)

    assert await repo.increment_quantity(created.id, 3) == 8
    assert await repo.increment_quantity(created.id, -20) == 0
    assert (await repo.get_item(created.id)).quantity == 0


async def test_adjust_quantity_against_database(repo, category):
    created = await repo.create_item(category.id, "Knob", 5, 2)

    assert await adjust_quantity(repo, created.id, 5, -10) == 0
    assert await adjust_quantity(repo, created.id, 0, 3) == 3


async def test_adjust_missing_item_raises_not_found(repo):
    with pytest.raises(NotFound):
        await adjust_quantity(repo, uuid.uuid4(), 1, 1)


async def test_staged_edit_persists_clamped_quantity(repo, category):
    created = await repo.create_item(category.id, "Knob", 10, 2)
    edit = await ItemEditSession.open(repo, created.id)

    edit.quantity.stage("5")
    assert edit.quantity.add() == 15
    assert (await repo.get_item(created.id)).quantity == 10

    edit.quantity.stage("20")
    assert edit.quantity.remove() == 0
    await edit.commit(repo)

    assert (await repo.get_item(created.id)).quantity == 0


async def test_delete_category_cascades_to_items(repo, category):
    other = await repo.create_category("Tools", "🛠️")
    await repo.create_item(category.id, "Knob", 1, 1)
    await repo.create_item(category.id, "Burner", 1, 1)
    kept = await repo.create_item(other.id, "Multimeter", 1, 1)

    await repo.delete_category(category.id)

    assert await repo.list_items_by_category(category.id) == []
    with pytest.raises(NotFound):
        await repo.get_category(category.id)
    assert [i.id for i in await repo.list_items()] == [kept.id]


async def test_delete_item(repo, category):
    created = await repo.create_item(category.id, "Knob", 1, 1)
    await repo.delete_item(created.id)
    with pytest.raises(NotFound):
        await repo.get_item(created.id)
    with pytest.raises(NotFound):
        await repo.delete_item(created.id)


async def test_update_category(repo, category):
    await repo.update_category(category.id, {"name": "Stove Parts", "icon": "⚙️"})
    updated = await repo.get_category(category.id)
    assert (updated.name, updated.icon) == ("Stove Parts", "⚙️")


async def test_stock_levels_projection(repo, category):
    await repo.create_item(category.id, "Knob", 0, 2)
    levels = await repo.list_stock_levels()
    assert len(levels) == 1
    assert (levels[0].category_id, levels[0].quantity, levels[0].min_stock) == (category.id, 0, 2)


async def test_upload_image_stores_blob_under_unique_names(repo, session, png_bytes):
    repo._images = DatabaseImageStore(session, bucket="item-images", base_url="")

    first = await repo.upload_image(png_bytes, "photo.png")
    second = await repo.upload_image(png_bytes, "photo.png")

    assert first != second
    assert first.startswith("/images/serve/item-images/")
    assert first.endswith(".png")


async def test_delta_beyond_column_range_still_clamps(repo, category):
    created = await repo.create_item(category.id, "Knob", 5, 2)

    assert await adjust_quantity(repo, created.id, 5, -10**20) == 0
    assert (await repo.get_item(created.id)).quantity == 0
