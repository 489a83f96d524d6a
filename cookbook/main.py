from typing import Any, Dict, Optional
from contextlib import asynccontextmanager
import logging
import sqlite3

from dotenv import load_dotenv
# load .env before settings are read at import time
load_dotenv()

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cookbook.models.recipe_schema import StealRequest
from cookbook.models.result import Failure, Result, envelope
from cookbook.orchestrate.run import steal, steal_and_digest
from cookbook.services import cooks, recipes
from cookbook.services.digest import digest_recipe
from cookbook.services.envelope import describe_validation_error
from cookbook.store.db import connect, ensure_db

logger = logging.getLogger(__name__)

STATUS_CODES = {
    "ValidationError": 422,
    "NotFoundError": 404,
    "ConflictError": 409,
    "TransactionError": 500,
    "UpstreamError": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_db()
    yield


app = FastAPI(title="Cookbook", lifespan=lifespan)


def get_conn():
    # sync dependencies and endpoints may run on different threadpool workers
    conn = connect(check_same_thread=False)
    try:
        yield conn
    finally:
        conn.close()


def respond(result: Result, status_code: int = 200) -> JSONResponse:
    if isinstance(result, Failure):
        status_code = STATUS_CODES.get(result.code, 500)
    return JSONResponse(status_code=status_code, content=envelope(result))


def invalid(message: str) -> JSONResponse:
    return respond(Failure(message=message or "Invalid request", code="ValidationError"))


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    # bodies that are not JSON objects and path ids that are not integers
    message = describe_validation_error(exc)
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
    return invalid(message)


# ---- recipes ---------------------------------------------------------------


@app.get("/recipes")
def list_recipes(page: Optional[str] = None, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.list_recipes(conn, page))


@app.post("/recipes")
def create_recipe(payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.create_recipe(conn, payload), status_code=201)


@app.post("/recipes/digest")
def digest(payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(digest_recipe(conn, payload), status_code=201)


@app.post("/recipes/steal")
def steal_recipe(payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    try:
        req = StealRequest.model_validate(payload)
    except ValidationError as e:
        return invalid(describe_validation_error(e))
    if req.digest:
        return respond(steal_and_digest(conn, req.url), status_code=201)
    return respond(steal(req.url))


@app.get("/recipes/{recipe_id}")
def get_recipe(recipe_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.get_recipe(conn, recipe_id))


@app.patch("/recipes/{recipe_id}/notes")
def update_notes(recipe_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.update_recipe_notes(conn, recipe_id, payload.get("notes")))


@app.delete("/recipes/{recipe_id}")
def delete_recipe(recipe_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.delete_recipe(conn, recipe_id))


# ---- ingredients -----------------------------------------------------------


@app.post("/recipes/{recipe_id}/ingredients")
def add_ingredient(recipe_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.add_ingredient(conn, {**payload, "recipe": recipe_id}), status_code=201)


@app.patch("/ingredients/{ingredient_id}")
def edit_ingredient(ingredient_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.edit_ingredient(conn, ingredient_id, payload))


@app.delete("/ingredients/{ingredient_id}")
def delete_ingredient(ingredient_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.delete_ingredient(conn, ingredient_id))


# ---- instructions ----------------------------------------------------------


@app.post("/recipes/{recipe_id}/instructions")
def add_instruction(recipe_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.add_instruction(conn, {**payload, "recipe": recipe_id}), status_code=201)


@app.patch("/instructions/{instruction_id}")
def edit_instruction(instruction_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.edit_instruction(conn, instruction_id, payload))


@app.delete("/instructions/{instruction_id}")
def delete_instruction(instruction_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(recipes.delete_instruction(conn, instruction_id))


# ---- cook sessions ---------------------------------------------------------


@app.post("/recipes/{recipe_id}/cooks")
def start_cook(recipe_id: int, payload: Optional[Dict[str, Any]] = Body(None), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.start_cook(conn, {**(payload or {}), "recipe": recipe_id}), status_code=201)


@app.get("/recipes/{recipe_id}/cooks")
def list_cooks(recipe_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.list_cooks(conn, recipe_id))


@app.get("/cooks/{cook_id}")
def get_cook(cook_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.get_cook(conn, cook_id))


@app.patch("/cooks/{cook_id}/notes")
def update_cook_notes(cook_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.update_cook_notes(conn, cook_id, payload.get("notes")))


@app.delete("/cooks/{cook_id}")
def delete_cook(cook_id: int, conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.delete_cook(conn, cook_id))


@app.put("/cooks/{cook_id}/ingredients/{ingredient_id}")
def check_ingredient(cook_id: int, ingredient_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.set_ingredient_checked(conn, cook_id, ingredient_id, payload.get("checked")))


@app.put("/cooks/{cook_id}/instructions/{instruction_id}")
def check_instruction(cook_id: int, instruction_id: int, payload: Dict[str, Any] = Body(...), conn: sqlite3.Connection = Depends(get_conn)):
    return respond(cooks.set_instruction_checked(conn, cook_id, instruction_id, payload.get("checked")))
