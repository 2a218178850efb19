from typing import Optional

from fastapi import Header, HTTPException, status

from watercounter.config import settings


async def get_current_user_id(
		x_telegram_user_id: Optional[str] = Header(None, alias="X-Telegram-User-Id")
) -> int:
	"""Caller identity forwarded by the mini-app or the bot front-end"""
	if not x_telegram_user_id:
		if settings.DEFAULT_TELEGRAM_USER_ID:
			return settings.DEFAULT_TELEGRAM_USER_ID
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Missing X-Telegram-User-Id header"
		)

	try:
		user_id = int(x_telegram_user_id)
	except ValueError:
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Invalid X-Telegram-User-Id header"
		)

	if user_id <= 0:
		raise HTTPException(
			status_code=status.HTTP_401_UNAUTHORIZED,
			detail="Invalid X-Telegram-User-Id header"
		)
	return user_id
