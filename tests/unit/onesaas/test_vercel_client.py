from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from onesaas.errors import AuthError, ConfigurationError, CreationError, ErrorKind
from onesaas.inmemory import ScriptedConsole
from onesaas.provisioning import DomainStep, StepStatus
from onesaas.providers import VercelClient, deploy_url_for, slugify_project_name


def _make_client(handler) -> tuple[httpx.AsyncClient, VercelClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return http, VercelClient(base_url='https://vc.test', http_client=http)


def _user_ok(request: httpx.Request) -> httpx.Response | None:
    if request.url.path == '/v2/user':
        return httpx.Response(200, json={'user': {'username': 'vuser', 'id': 'u1'}})
    return None


def test_slug_and_deploy_url():
    assert slugify_project_name('Acme_App') == 'acme-app'
    assert deploy_url_for('acme-app') == 'https://acme-app.vercel.app'


@pytest.mark.asyncio
async def test_authenticate_reads_username():
    async def handler(request: httpx.Request) -> httpx.Response:
        return _user_ok(request)

    http, client = _make_client(handler)
    async with http:
        account = await client.authenticate('vc_token')

    assert account.account == 'vuser'


@pytest.mark.asyncio
async def test_authenticate_unexpected_body_is_auth_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'nope': True})

    http, client = _make_client(handler)
    async with http:
        with pytest.raises(AuthError):
            await client.authenticate('vc_token')


@pytest.mark.asyncio
async def test_create_deployment_links_repository():
    seen: dict[str, Any] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        seen['path'] = request.url.path
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'id': 'prj_1', 'name': 'acme-app', 'accountId': 'team_1'})

    http, client = _make_client(handler)
    async with http:
        await client.authenticate('vc_token')
        deployment = await client.create_deployment('acme-app', repository='octocat/acme-app')

    assert seen['path'] == '/v10/projects'
    assert seen['body'] == {
        'name': 'acme-app',
        'framework': 'nextjs',
        'gitRepository': {'type': 'github', 'repo': 'octocat/acme-app'},
    }
    assert deployment.project_id == 'prj_1'
    assert deployment.deploy_url == 'https://acme-app.vercel.app'


@pytest.mark.asyncio
async def test_set_environment_variable_targets_all_environments():
    seen: dict[str, Any] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        seen['path'] = request.url.path
        seen['body'] = json.loads(request.content)
        return httpx.Response(201, json={'created': {}})

    http, client = _make_client(handler)
    async with http:
        await client.authenticate('vc_token')
        await client.set_environment_variable('prj_1', 'DATABASE_URL', 'postgresql://x')

    assert seen['path'] == '/v10/projects/prj_1/env'
    assert seen['body'] == {
        'key': 'DATABASE_URL',
        'value': 'postgresql://x',
        'type': 'encrypted',
        'target': ['production', 'preview', 'development'],
    }


@pytest.mark.asyncio
async def test_set_environment_variable_failure_is_configuration_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        return httpx.Response(400, json={'error': {'message': 'env already exists'}})

    http, client = _make_client(handler)
    async with http:
        await client.authenticate('vc_token')
        with pytest.raises(ConfigurationError) as exc_info:
            await client.set_environment_variable('prj_1', 'KEY', 'v')

    assert exc_info.value.kind is ErrorKind.CONFIGURATION
    assert exc_info.value.message == 'env already exists'


@pytest.mark.asyncio
async def test_domain_operations():
    calls: list[tuple[str, str, str]] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        calls.append((request.method, request.url.path, request.url.params.get('name', '')))
        if request.url.path == '/v4/domains/status':
            return httpx.Response(200, json={'available': True})
        if request.url.path == '/v4/domains/price':
            return httpx.Response(200, json={'price': 20, 'period': 1})
        return httpx.Response(200, json={})

    http, client = _make_client(handler)
    async with http:
        await client.authenticate('vc_token')
        availability = await client.check_domain('myapp.com')
        price = await client.get_domain_price('myapp.com')
        await client.purchase_domain('myapp.com')
        await client.attach_domain('prj_1', 'myapp.com')

    assert availability.available is True
    assert price.price == 20.0
    assert calls == [
        ('GET', '/v4/domains/status', 'myapp.com'),
        ('GET', '/v4/domains/price', 'myapp.com'),
        ('POST', '/v5/domains/buy', ''),
        ('POST', '/v10/projects/prj_1/domains', ''),
    ]


@pytest.mark.asyncio
async def test_check_domain_without_flag_fails():
    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        return httpx.Response(200, json={'error': 'unknown'})

    http, client = _make_client(handler)
    async with http:
        await client.authenticate('vc_token')
        with pytest.raises(CreationError):
            await client.check_domain('myapp.com')


def _price_handler(price_body: dict[str, Any]):
    async def handler(request: httpx.Request) -> httpx.Response:
        if (resp := _user_ok(request)) is not None:
            return resp
        if request.url.path == '/v4/domains/status':
            return httpx.Response(200, json={'available': True})
        if request.url.path == '/v4/domains/price':
            return httpx.Response(200, json=price_body)
        raise AssertionError(f'unexpected request {request.method} {request.url.path}')

    return handler


@pytest.mark.asyncio
@pytest.mark.parametrize('body', [{'price': 'unavailable'}, {'price': 20, 'period': 'yearly'}, {'price': [20]}])
async def test_unparseable_domain_price_is_creation_error(body):
    http, client = _make_client(_price_handler(body))
    async with http:
        await client.authenticate('vc_token')
        with pytest.raises(CreationError) as exc_info:
            await client.get_domain_price('myapp.com')

    assert exc_info.value.kind is ErrorKind.CREATION


@pytest.mark.asyncio
async def test_domain_step_survives_unparseable_price(provisioned_context):
    http, client = _make_client(_price_handler({'price': 'unavailable'}))
    async with http:
        await client.authenticate('vc_token')
        outcome = await DomainStep(client, ScriptedConsole(['2', 'myapp.com'])).run(provisioned_context)

    assert outcome.status is StepStatus.FAILED
    assert not outcome.is_fatal_failure
    assert outcome.error_kind is ErrorKind.CREATION
