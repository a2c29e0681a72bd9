from fastapi import Request
from fastapi.responses import JSONResponse
import logging
import redis

from lms.utils.responses import error_body
from lms.utils.security import bearer_token


async def session_middleware(request: Request, call_next):
	"""
	Middleware HTTP que resuelve la sesión antes de procesar la request.
	- Lee el token (Authorization: Bearer o X-Session-Id)
	- Si existe en Redis deja request.state.user_id; si no, queda en None
	- No rechaza: cada ruta decide si exige usuario (hay rutas públicas
	  que solo se enriquecen con la sesión, como el detalle de curso)
	"""

	request.state.user_id = None
	request.state.session_token = None

	session_id = bearer_token(request.headers.get("authorization")) or request.headers.get("x-session-id")
	if not session_id:
		return await call_next(request)

	try:
		user_id = request.app.state.sessions.resolve(session_id)
	except redis.RedisError as e:
		logging.error(f"Error connecting to Redis in middleware: {e}")
		return JSONResponse(status_code=500, content=error_body("Session store unavailable"))

	if user_id:
		request.state.user_id = user_id
		request.state.session_token = session_id

	return await call_next(request)
