"""
tests/test_schema.py -- Shape of the GraphQL schema and its extensions.
"""

from __future__ import annotations

from graph.schema import schema


def _nested_friends(levels: int) -> str:
    return "{ me { " + "friends { " * levels + "id" + " }" * levels + " } }"


def test_user_type_has_no_password_hash():
    sdl = str(schema)
    assert "passwordHash" not in sdl
    assert "password_hash" not in sdl


def test_wire_names_are_camel_case():
    sdl = str(schema)
    assert "displayName: String!" in sdl
    assert "likePost(postId: ID!): Post" in sdl
    assert "register(firstName: String!, lastName: String!, email: String!, password: String!): UserLogged" in sdl


def test_relations_are_nullable():
    sdl = str(schema)
    assert "friends: [User!]\n" in sdl
    assert "creator: User\n" in sdl


def test_selecting_an_unknown_field_fails_validation(make_user, make_ctx, execute):
    ada = make_user("Ada", "Lovelace", "ada@example.com")
    result = execute(make_ctx(ada.id), "{ me { passwordHash } }")
    assert result.data is None
    assert "passwordHash" in result.errors[0].message


def test_shallow_nesting_is_allowed(make_user, make_ctx, execute):
    ada = make_user("Ada", "Lovelace", "ada@example.com")
    result = execute(make_ctx(ada.id), _nested_friends(3))
    assert result.errors is None
    assert result.data == {"me": {"friends": []}}


def test_deep_nesting_is_rejected(make_user, make_ctx, execute):
    ada = make_user("Ada", "Lovelace", "ada@example.com")
    result = execute(make_ctx(ada.id), _nested_friends(15))
    assert result.data is None
    assert "depth" in result.errors[0].message
