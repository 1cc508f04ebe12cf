import pytest

from app.modules.email_templates.render import render_template, resolve_path


def test_resolves_nested_paths():
    variables = {"customer": {"name": "Ada", "plan": {"speed": "100/20"}}}
    assert resolve_path(variables, "customer.plan.speed") == "100/20"
    out = render_template("Hi {{customer.name}}", "<p>Your plan: {{ customer.plan.speed }}</p>", variables)
    assert out["subject"] == "Hi Ada"
    assert out["html"] == "<p>Your plan: 100/20</p>"
    assert out["unresolved_variables"] == []


def test_unresolved_placeholders_are_kept_and_listed_once():
    out = render_template("Hello {{ name }}", "<p>{{ name }} / {{ account.id }} / {{ empty }}</p>", {"empty": None})
    assert out["subject"] == "Hello {{ name }}"
    assert out["html"] == "<p>{{ name }} / {{ account.id }} / {{ empty }}</p>"
    assert out["unresolved_variables"] == ["name", "account.id", "empty"]


def test_values_escaped_in_body_only():
    out = render_template("Re: {{ topic }}", "<p>{{ topic }}</p>", {"topic": "<b>Fish & Chips</b>"})
    assert out["subject"] == "Re: <b>Fish & Chips</b>"
    assert out["html"] == "<p>&lt;b&gt;Fish &amp; Chips&lt;/b&gt;</p>"


def test_non_string_values():
    out = render_template("{{ n }} items", "<p>{{ ok }}</p>", {"n": 3, "ok": True})
    assert out["subject"] == "3 items"
    assert out["html"] == "<p>True</p>"


async def _template(client, headers, **overrides):
    payload = {"title": "Welcome", "subject": "Welcome {{ customer.name }}",
               "html_body": "<p>Hi {{ customer.name }}, your account is {{ account_id }}</p>"}
    payload.update(overrides)
    r = await client.post("/api/email-templates", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_template_crud_permissions(client, tenant, auth):
    r = await client.post("/api/email-templates", json={"title": "x", "subject": "y", "html_body": "z"}, headers=auth("team_member"))
    assert r.status_code == 403

    tpl = await _template(client, auth("manager"))
    assert tpl["status"] == "active"

    r = await client.get(f"/api/email-templates/{tpl['id']}", headers=auth("team_member"))
    assert r.status_code == 200

    r = await client.patch(f"/api/email-templates/{tpl['id']}", json={"status": "archived"}, headers=auth("manager"))
    assert r.json()["status"] == "archived"

    r = await client.get("/api/email-templates", params={"status": "active"}, headers=auth("manager"))
    assert r.json() == []

    r = await client.delete(f"/api/email-templates/{tpl['id']}", headers=auth("manager"))
    assert r.status_code == 204
    r = await client.get(f"/api/email-templates/{tpl['id']}", headers=auth("manager"))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_preview_endpoint(client, tenant, auth):
    tpl = await _template(client, auth("manager"))
    r = await client.post(f"/api/email-templates/{tpl['id']}/preview",
                          json={"variables": {"customer": {"name": "Ada"}}}, headers=auth("team_member"))
    assert r.status_code == 200
    body = r.json()
    assert body["subject"] == "Welcome Ada"
    assert body["html"] == "<p>Hi Ada, your account is {{ account_id }}</p>"
    assert body["unresolved_variables"] == ["account_id"]


@pytest.mark.asyncio
async def test_preview_unknown_template(client, tenant, auth):
    r = await client.post("/api/email-templates/00000000-0000-0000-0000-000000000001/preview",
                          json={"variables": {}}, headers=auth("manager"))
    assert r.status_code == 404
