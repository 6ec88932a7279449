from typing import Dict, Any
from fastapi import Request, Response, HTTPException
import logging
import os
import time
import hashlib

logger = logging.getLogger(__name__)

def _client_key(req: Request) -> str:
    # Priorité: jeton bearer (hashé) puis IP
    auth_header = req.headers.get("Authorization", "")
    path = req.url.path
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else ""
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{path}"

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Forcer le fallback mémoire en DEV si demandé
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            # store: clé -> (fenêtre en secondes, horodatages); purge des fenêtres expirées
            for k in [k for k, (window, ts) in store.items() if now - ts[-1] >= window]:
                del store[k]
            hits = [t for t in store.get(key, (seconds, []))[1] if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = (seconds, hits)
            request.app.state._rl_store = store
            return

        # Respecter le flag global
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter import FastAPILimiter
        from fastapi_limiter.depends import RateLimiter
        if getattr(FastAPILimiter, "redis", None) is None:
            return

        async def _identifier(req: Request) -> str:
            return _client_key(req)
        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible (ou SCRIPT non supporté): pas de 429 en prod,
            # en dev activer LOCAL_RATE_LIMIT_FALLBACK=1
            logger.warning("rate_limit indisponible path=%s: %s", request.url.path, e)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    from fastapi_limiter import FastAPILimiter
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    return {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
    }
