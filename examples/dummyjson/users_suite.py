"""User flow against dummyjson.com: log in, create, fetch, delete."""

import time

from stepqa import Lazy, Step, Suite, a, expect, expect_at, includes


def unique_user(ctx):
    user = ctx.fixture("newUser")
    stamp = int(time.time() * 1000)
    user["username"] = f"{user['username']}_{stamp}"
    user["email"] = f"{stamp}_{user['email']}"
    return user


def user_url(ctx):
    return f"/users/{ctx.alias('createUser', 'body.id')}"


def register_commands(registry):
    @registry.command("create_user")
    def create_user(commands, alias="createUser"):
        return Step(
            name="create unique user",
            action=_create,
            alias=alias,
            args={"payload": Lazy(unique_user)},
        )


def _create(client, ctx, payload):
    response = ctx.request("POST", "/users/add", json=payload, auth=True)
    expect(response.status, 201)
    expect(response.body, includes({"firstName": payload["firstName"], "email": payload["email"]}))
    return response


users = Suite("users", "Create, read and delete a user")


@users.before
def authenticate(q):
    q.command("login")


@users.it("creates a user from the fixture")
def creates(q):
    q.command("create_user")

    def check(client, ctx):
        expect_at(ctx.alias("createUser"), "body.id", a("number"))

    q.enqueue(check, name="id is a number")


@users.it("fetches the created user")
def fetches(q):
    q.command("request", "GET", Lazy(user_url), alias="getUser", expected_status=200)

    def check(client, ctx):
        expect(ctx.alias("getUser", "body.username"), ctx.alias("createUser", "body.username"))

    q.enqueue(check, name="username matches")


@users.it("deletes the created user")
def deletes(q):
    q.command("request", "DELETE", Lazy(user_url), auth=True, alias="deleteUser", expected_status=200)

    def check(client, ctx):
        expect(ctx.alias("deleteUser", "body.id"), ctx.alias("createUser", "body.id"))

    q.enqueue(check, name="deleted id matches")


@users.it("reports a missing user")
def missing(q):
    q.command("request", "GET", "/users/abc", alias="missingUser", expected_status=404)
    q.enqueue(
        lambda client, ctx: expect_at(ctx.alias("missingUser"), "body.message", "User with id 'abc' not found"),
        name="error message",
    )
