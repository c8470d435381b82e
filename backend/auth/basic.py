from typing import Dict
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
import os
import secrets

from backend import config

security = HTTPBasic()
_credentials_cache: Dict[str, str] = {}
_cache_file_path: str = ""


def load_credentials(file_path: str) -> Dict[str, str]:
	"""
	Lê o arquivo de credenciais no formato 'usuario:senha' (uma por linha).
	Linhas vazias ou iniciadas por '#' são ignoradas. O resultado fica em cache
	por caminho de arquivo.
	"""
	global _credentials_cache, _cache_file_path
	if file_path == _cache_file_path and _credentials_cache:
		return _credentials_cache
	_credentials_cache = {}
	_cache_file_path = file_path
	try:
		with open(file_path, "r", encoding="utf-8") as f:
			for line in f:
				line = line.strip()
				if not line or line.startswith("#") or ":" not in line:
					continue
				username, password = line.split(":", 1)
				_credentials_cache[username] = password
	except FileNotFoundError:
		_credentials_cache = {}
	return _credentials_cache


async def basic_auth(credentials: HTTPBasicCredentials = Depends(security)) -> str:
	credentials_file = os.getenv("BASIC_AUTH_CREDENTIALS_FILE", config.BASIC_AUTH_CREDENTIALS_FILE)
	expected = load_credentials(credentials_file).get(credentials.username)
	if expected is None or not secrets.compare_digest(expected, credentials.password):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas", headers={"WWW-Authenticate": "Basic"})
	return credentials.username
