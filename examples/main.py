from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI
import sqlalchemy
from sqlalchemy import String, ForeignKey, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
import uvicorn

from fastapi_query_params import PaginatedQuery, ParsedQuery, QueryBuilder, QueryConfig, SQLAlchemyStore
from fastapi_query_params.pagination import create_paginated_response

from examples.schemas import StatusEnum, UserResponse

logging.basicConfig(level=logging.DEBUG)

# ───── App & DB Setup ───────────────────────────

DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(DATABASE_URL, echo=True)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)
Base = declarative_base()


# ───── Models ────────────────────────────────────

class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    users: Mapped[list["User"]] = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"))
    age: Mapped[int] = mapped_column(nullable=True)
    isActive: Mapped[bool] = mapped_column(default=True, nullable=False)
    status: Mapped[StatusEnum] = mapped_column(
        sqlalchemy.Enum(StatusEnum, values_callable=lambda enum: [member.value for member in enum]),
        default=StatusEnum.ACTIVE,
        nullable=False
    )
    createdAt: Mapped[datetime] = mapped_column(default=lambda: datetime.now(timezone.utc))

    role: Mapped["Role"] = relationship("Role", back_populates="users", lazy="selectin")


# ───── Lifespan / Seed Data ─────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        result = await session.execute(select(Role))
        if not result.scalars().first():
            admin = Role(name="admin")
            user = Role(name="user")
            manager = Role(name="manager")
            session.add_all([admin, user, manager])
            await session.commit()

            session.add_all([
                User(name="Alice", email="alice@example.com", role=admin,
                     status=StatusEnum.ACTIVE, age=30, isActive=True),
                User(name="Bob", email="bob@example.com", role=user,
                     status=StatusEnum.INACTIVE, age=25, isActive=False),
                User(name="Carol", email="carol@example.com", role=manager,
                     status=StatusEnum.SUSPENDED, age=40, isActive=False),
                User(name="Dave", email="dave@example.com", role=admin,
                     status=StatusEnum.ACTIVE, age=35, isActive=True),
                User(name="Eve", email="eve@example.com", role=user,
                     status=StatusEnum.ACTIVE, age=28, isActive=True),
            ])
            await session.commit()

    yield


# ───── Query Config ──────────────────────────────

def hide_suspended(params, where):
    # Only an explicit ?includeSuspended=true shows suspended users
    where.pop("includeSuspended", None)
    if params.get("includeSuspended") != "true":
        where["NOT"] = [{"status": StatusEnum.SUSPENDED}]


users_config = QueryConfig(
    search_fields=["name", "email"],
    filter_fields=["status"],
    boolean_fields=["isActive"],
    number_fields=["age"],
    range_fields=["age", "createdAt"],
    allowed_sort_fields=["name", "age", "createdAt", "role.name"],
    custom_filters=hide_suspended,
)

users_store = SQLAlchemyStore(SessionLocal, User)


# ───── FastAPI App ───────────────────────────────

app = FastAPI(lifespan=lifespan)


@app.get("/users/query")
async def describe_users_query(query: ParsedQuery = QueryBuilder(users_config)):
    """
    Show what a query string parses into, e.g.

    GET /users/query?page=2&limit=2&search=a&sortBy=role.name,name&sortOrder=asc
    GET /users/query?age[gte]=30&status[in]=active,inactive
    GET /users/query?ageRange=20,30&isActive=true
    """
    return query.model_dump(by_alias=True)


@app.get("/users")
async def get_users(response=PaginatedQuery(users_store, users_config)):
    return {
        "data": [UserResponse.model_validate(user) for user in response.data],
        "meta": response.meta.model_dump(by_alias=True),
    }


@app.get("/users/manual")
async def get_users_manual(query: ParsedQuery = QueryBuilder(users_config)):
    """Same result as /users, running find_many and count by hand."""
    users = await users_store.find_many(query.options)
    total = await users_store.count({"where": query.where})
    page = create_paginated_response(
        [UserResponse.model_validate(user) for user in users],
        total,
        query.pagination.page,
        query.pagination.limit,
    )
    return page.model_dump(by_alias=True)


# ───── Run Server ────────────────────────────────

if __name__ == "__main__":
    uvicorn.run("examples.main:app", host="0.0.0.0", port=8000, reload=True)
