import pytest

from conftest import USER_ID


async def test_refresh_devices_replaces_cache(catalog, store, remote):
	devices = await catalog.refresh_devices(USER_ID)

	assert {d.name for d in devices} == {"Boiler room", "Kitchen"}
	assert len(await store.list_devices()) == 2


async def test_refresh_devices_falls_back_to_cache_when_offline(catalog, remote):
	await catalog.refresh_devices(USER_ID)
	remote.healthy = False
	remote.devices = []

	devices = await catalog.refresh_devices(USER_ID)

	assert [d.id for d in devices] == [1, 2]


async def test_refresh_user_caches_profile(catalog, store, remote):
	user = await catalog.refresh_user(USER_ID)

	assert user.first_name == "Anna"
	cached = await store.get_user(USER_ID)
	assert cached.username == "anna"
	assert cached.last_synced_at is not None


async def test_refresh_user_offline_uses_cache_or_none(catalog, remote):
	remote.healthy = False
	assert await catalog.refresh_user(USER_ID) is None

	remote.healthy = True
	await catalog.refresh_user(USER_ID)
	remote.healthy = False
	user = await catalog.refresh_user(USER_ID)
	assert user.role == "employee"


@pytest.mark.parametrize("payload", [
	["not", "a", "profile"],
	{"first_name": "Anna", "role": "superuser"},
])
async def test_refresh_user_malformed_profile_uses_cache(catalog, store, remote, payload):
	await catalog.refresh_user(USER_ID)
	remote.profile = payload

	user = await catalog.refresh_user(USER_ID)

	assert user.first_name == "Anna"
	assert user.role == "employee"
	assert (await store.get_user(USER_ID)).username == "anna"


async def test_refresh_user_malformed_profile_without_cache(catalog, remote):
	remote.profile = "oops"
	assert await catalog.refresh_user(USER_ID) is None
