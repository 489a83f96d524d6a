from cookbook.models.result import Failure, Success, envelope
from cookbook.services import recipes
from cookbook.services.digest import digest_recipe


def _recipe(conn, title="Tomato Soup", **extra):
    payload = {"title": title, "servings": 2, "preptime": 5, "cooktime": 25, **extra}
    result = recipes.create_recipe(conn, payload)
    assert isinstance(result, Success), result
    return result.data


def assert_envelope(result):
    body = envelope(result)
    assert isinstance(body["success"], bool)
    if body["success"]:
        assert set(body) == {"success", "data"}
        assert body["data"] is not None
    else:
        assert set(body) == {"success", "message"}
        assert body["message"]


def test_create_recipe_returns_row_with_id_and_timestamp(conn):
    recipe = _recipe(conn, description="Simple and red")
    assert recipe.id > 0
    assert recipe.title == "Tomato Soup"
    assert recipe.description == "Simple and red"
    assert recipe.created_at is not None


def test_create_recipe_rejects_missing_and_mistyped_fields(conn):
    missing = recipes.create_recipe(conn, {"title": "No times", "servings": 2})
    assert isinstance(missing, Failure)
    assert missing.code == "ValidationError"
    assert "preptime" in missing.message

    mistyped = recipes.create_recipe(conn, {"title": "Typed", "servings": "4", "preptime": 1, "cooktime": 1})
    assert isinstance(mistyped, Failure)
    assert "servings" in mistyped.message

    negative = recipes.create_recipe(conn, {"title": "Neg", "servings": 1, "preptime": -5, "cooktime": 1})
    assert isinstance(negative, Failure)

    assert conn.execute("SELECT COUNT(*) FROM recipe").fetchone()[0] == 0


def test_duplicate_title_is_a_conflict(conn):
    _recipe(conn, "Dal")
    result = recipes.create_recipe(conn, {"title": "Dal", "servings": 1, "preptime": 1, "cooktime": 1})
    assert isinstance(result, Failure)
    assert result.code == "ConflictError"
    assert "UNIQUE" in result.message


def test_get_recipe_groups_children(conn, make_payload):
    created = digest_recipe(conn, make_payload()).data

    result = recipes.get_recipe(conn, created.id)

    assert isinstance(result, Success)
    assert result.data.recipe.title == "Pancakes"
    assert len(result.data.ingredients) == 3
    assert [s.order for s in result.data.instructions] == [1, 2]


def test_get_missing_recipe_is_not_found(conn):
    result = recipes.get_recipe(conn, 999)
    assert isinstance(result, Failure)
    assert result.code == "NotFoundError"
    assert result.message == "No recipe with that ID found"


def test_pagination(conn):
    for i in range(45):
        _recipe(conn, f"Recipe {i:02d}")

    first = recipes.list_recipes(conn, 1).data
    third = recipes.list_recipes(conn, 3).data

    assert len(first.items) == 20
    assert len(third.items) == 5
    assert first.total == 45
    assert first.total_pages == 3
    # newest first
    assert first.items[0].title == "Recipe 44"

    for page in (0, -2, None, "abc"):
        normalized = recipes.list_recipes(conn, page).data
        assert normalized.page == 1
        assert [r.id for r in normalized.items] == [r.id for r in first.items]


def test_empty_listing(conn):
    page = recipes.list_recipes(conn).data
    assert page.items == []
    assert page.total == 0
    assert page.total_pages == 0


def test_update_notes(conn):
    recipe = _recipe(conn)
    updated = recipes.update_recipe_notes(conn, recipe.id, "Add more basil")
    assert isinstance(updated, Success)
    assert updated.data.notes == "Add more basil"

    missing = recipes.update_recipe_notes(conn, 12345, "nope")
    assert isinstance(missing, Failure)
    assert missing.code == "NotFoundError"


def test_add_edit_delete_ingredient(conn):
    recipe = _recipe(conn)
    added = recipes.add_ingredient(conn, {"recipe": recipe.id, "name": "tomatoes", "amount": 800, "unit": "g"})
    assert isinstance(added, Success)
    ingredient = added.data
    assert ingredient.amount == 800.0

    edited = recipes.edit_ingredient(conn, ingredient.id, {"amount": 1.5, "unit": "kg"})
    assert edited.data.amount == 1.5
    assert edited.data.unit == "kg"
    assert edited.data.name == "tomatoes"

    deleted = recipes.delete_ingredient(conn, ingredient.id)
    assert deleted.data == {"id": ingredient.id, "deleted": True}
    # deleting again is not an error
    again = recipes.delete_ingredient(conn, ingredient.id)
    assert isinstance(again, Success)
    assert again.data["deleted"] is False


def test_ingredient_validation(conn):
    recipe = _recipe(conn)
    for bad in (
        {"recipe": recipe.id, "name": "", "amount": 1, "unit": "g"},
        {"recipe": recipe.id, "name": "salt", "amount": "a pinch", "unit": "g"},
        {"recipe": recipe.id, "name": "salt", "amount": 1, "unit": "   "},
        {"recipe": recipe.id, "name": "salt", "amount": True, "unit": "g"},
    ):
        result = recipes.add_ingredient(conn, bad)
        assert isinstance(result, Failure), bad
        assert result.code == "ValidationError"


def test_ingredient_for_missing_recipe_hits_foreign_key(conn):
    result = recipes.add_ingredient(conn, {"recipe": 404, "name": "salt", "amount": 1, "unit": "tsp"})
    assert isinstance(result, Failure)
    assert result.code == "NotFoundError"
    assert "FOREIGN KEY" in result.message


def test_edit_ingredient_needs_fields_and_existing_row(conn):
    recipe = _recipe(conn)
    ingredient = recipes.add_ingredient(conn, {"recipe": recipe.id, "name": "salt", "amount": 1, "unit": "tsp"}).data

    empty = recipes.edit_ingredient(conn, ingredient.id, {})
    assert isinstance(empty, Failure)
    assert empty.message == "No fields to update"

    missing = recipes.edit_ingredient(conn, 9999, {"name": "pepper"})
    assert isinstance(missing, Failure)
    assert missing.code == "NotFoundError"

    unknown = recipes.edit_ingredient(conn, ingredient.id, {"recipe": 3})
    assert isinstance(unknown, Failure)
    assert unknown.code == "ValidationError"


def test_instruction_order_unique_per_recipe(conn):
    soup = _recipe(conn, "Soup")
    stew = _recipe(conn, "Stew")

    first = recipes.add_instruction(conn, {"recipe": soup.id, "order": 1, "content": "Chop"})
    assert isinstance(first, Success)

    clash = recipes.add_instruction(conn, {"recipe": soup.id, "order": 1, "content": "Simmer"})
    assert isinstance(clash, Failure)
    assert clash.code == "ConflictError"

    other_recipe = recipes.add_instruction(conn, {"recipe": stew.id, "order": 1, "content": "Brown the meat"})
    assert isinstance(other_recipe, Success)


def test_edit_instruction_into_taken_order_conflicts(conn):
    recipe = _recipe(conn)
    recipes.add_instruction(conn, {"recipe": recipe.id, "order": 1, "content": "Chop"})
    second = recipes.add_instruction(conn, {"recipe": recipe.id, "order": 2, "content": "Simmer"}).data

    clash = recipes.edit_instruction(conn, second.id, {"order": 1})
    assert isinstance(clash, Failure)
    assert clash.code == "ConflictError"

    moved = recipes.edit_instruction(conn, second.id, {"order": 3, "content": "Simmer gently"})
    assert moved.data.order == 3
    assert moved.data.content == "Simmer gently"


def test_instruction_validation(conn):
    recipe = _recipe(conn)
    for bad in (
        {"recipe": recipe.id, "order": 0, "content": "Chop"},
        {"recipe": recipe.id, "order": 1.5, "content": "Chop"},
        {"recipe": recipe.id, "order": 1, "content": ""},
        {"recipe": recipe.id, "content": "Chop"},
    ):
        result = recipes.add_instruction(conn, bad)
        assert isinstance(result, Failure), bad
        assert result.code == "ValidationError"


def test_delete_recipe_cascades(conn, make_payload):
    created = digest_recipe(conn, make_payload()).data
    ingredient_ids = [r[0] for r in conn.execute("SELECT id FROM ingredient WHERE recipe = ?", (created.id,))]
    instruction_ids = [r[0] for r in conn.execute("SELECT id FROM instruction WHERE recipe = ?", (created.id,))]
    assert len(ingredient_ids) + len(instruction_ids) == 5

    deleted = recipes.delete_recipe(conn, created.id)
    assert deleted.data["deleted"] is True

    assert isinstance(recipes.get_recipe(conn, created.id), Failure)
    for ingredient_id in ingredient_ids:
        assert conn.execute("SELECT 1 FROM ingredient WHERE id = ?", (ingredient_id,)).fetchone() is None
        assert recipes.edit_ingredient(conn, ingredient_id, {"name": "x"}).code == "NotFoundError"
    for instruction_id in instruction_ids:
        assert conn.execute("SELECT 1 FROM instruction WHERE id = ?", (instruction_id,)).fetchone() is None


def test_delete_missing_recipe_is_not_an_error(conn):
    result = recipes.delete_recipe(conn, 31337)
    assert isinstance(result, Success)
    assert result.data == {"id": 31337, "deleted": False}


def test_every_operation_returns_a_clean_envelope(conn, make_payload):
    recipe = _recipe(conn)
    ingredient = recipes.add_ingredient(conn, {"recipe": recipe.id, "name": "salt", "amount": 1, "unit": "tsp"}).data
    instruction = recipes.add_instruction(conn, {"recipe": recipe.id, "order": 1, "content": "Boil"}).data

    results = [
        recipes.create_recipe(conn, {"title": "Another", "servings": 1, "preptime": 0, "cooktime": 0}),
        recipes.create_recipe(conn, {"title": "Another"}),
        recipes.get_recipe(conn, recipe.id),
        recipes.get_recipe(conn, -1),
        recipes.list_recipes(conn, 1),
        recipes.update_recipe_notes(conn, recipe.id, "n"),
        recipes.update_recipe_notes(conn, -1, "n"),
        recipes.add_ingredient(conn, {"recipe": recipe.id}),
        recipes.edit_ingredient(conn, ingredient.id, {"name": "sea salt"}),
        recipes.edit_ingredient(conn, -1, {"name": "sea salt"}),
        recipes.delete_ingredient(conn, ingredient.id),
        recipes.add_instruction(conn, {"recipe": recipe.id, "order": 1, "content": "Again"}),
        recipes.edit_instruction(conn, instruction.id, {"content": "Boil hard"}),
        recipes.delete_instruction(conn, instruction.id),
        digest_recipe(conn, make_payload()),
        digest_recipe(conn, make_payload(ingredients="flour")),
        recipes.delete_recipe(conn, recipe.id),
    ]

    for result in results:
        assert_envelope(result)


def test_non_finite_amounts_are_rejected(conn):
    recipe = _recipe(conn)
    ingredient = recipes.add_ingredient(conn, {"recipe": recipe.id, "name": "salt", "amount": 1, "unit": "tsp"}).data

    for amount in (float("inf"), float("nan")):
        added = recipes.add_ingredient(conn, {"recipe": recipe.id, "name": "pepper", "amount": amount, "unit": "g"})
        assert isinstance(added, Failure)
        assert added.code == "ValidationError"
        assert added.message == "amount: must be a finite number"

        edited = recipes.edit_ingredient(conn, ingredient.id, {"amount": amount})
        assert edited.code == "ValidationError"

    grouped = recipes.get_recipe(conn, recipe.id)
    assert [g.amount for g in grouped.data.ingredients] == [1.0]
    assert_envelope(grouped)


def test_oversized_integers_are_validation_errors(conn):
    created = recipes.create_recipe(conn, {"title": "Huge", "servings": 10**30, "preptime": 1, "cooktime": 1})
    assert isinstance(created, Failure)
    assert created.code == "ValidationError"
    assert created.message == "servings: is too large"

    recipe = _recipe(conn)
    step = recipes.add_instruction(conn, {"recipe": recipe.id, "order": 2**63, "content": "Wait"})
    assert step.code == "ValidationError"

    lookup = recipes.get_recipe(conn, 10**30)
    assert isinstance(lookup, Failure)
    assert lookup.code == "ValidationError"
