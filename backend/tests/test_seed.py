from scripts.seed_demo_data import get_or_create_item


async def test_get_or_create_item_reports_only_new_rows(session, category):
    item, is_new = await get_or_create_item(session, category, "Burner Head", 3, 4)
    assert is_new

    again, is_new = await get_or_create_item(session, category, " burner head ", 9, 9)
    assert not is_new
    assert again.id == item.id
    assert again.quantity == 3
