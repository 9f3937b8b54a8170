import pytest
from fastapi import HTTPException

from media_platform.infra import jwt as jwt_helper
from media_platform.infra.auth import get_admin_user, get_current_user, get_optional_user, verify_access_jwt
from media_platform.settings import settings


def test_verify_access_jwt_reads_roles():
	token = jwt_helper.encode_access({"sub": "5", "username": "ada", "roles": ["admin", "editor"]})
	user = verify_access_jwt(token)
	assert user.id == 5
	assert user.username == "ada"
	assert user.is_admin


def test_verify_access_jwt_accepts_single_role_claim():
	token = jwt_helper.encode_access({"sub": "6", "role": "editor"})
	user = verify_access_jwt(token)
	assert user.roles == ("editor",)
	assert not user.is_admin


def test_tampered_token_is_rejected():
	token = jwt_helper.encode_access({"sub": "5"}) + "x"
	with pytest.raises(HTTPException) as excinfo:
		verify_access_jwt(token)
	assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_dev_headers_ignored_outside_dev():
	settings.environment = "production"
	with pytest.raises(HTTPException) as excinfo:
		await get_current_user(x_user_id="3", x_user_roles="admin", credentials=None)
	assert excinfo.value.status_code == 401
	assert await get_optional_user(x_user_id="3", x_user_roles=None, credentials=None) is None


@pytest.mark.asyncio
async def test_admin_guard():
	member = await get_current_user(x_user_id="3", x_user_roles=None, credentials=None)
	with pytest.raises(HTTPException) as excinfo:
		await get_admin_user(member)
	assert excinfo.value.status_code == 403

	admin = await get_current_user(x_user_id="4", x_user_roles="admin, editor", credentials=None)
	assert await get_admin_user(admin) is admin
