"""
The identity gate: turns the bearer token on a request into the caller's
identity. Tokens are issued and signed by the identity service; we only
verify them with its public key and trust what they say.

To use the dependency:

```
@router.get("/endpoint")
async def endpoint(caller: CallerDependency):
    return caller.user_id
```
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from structlog.typing import FilteringBoundLogger

from studysync.core.auth import decode_access_token
from studysync.core.tokens import KeyDecodeError
from studysync.core.user import IdentityData
from studysync.service import user as user_service

from .dependencies import LoggerDependency


async def mirror_caller(
    identity: IdentityData, request: Request, log: FilteringBoundLogger
):
    """
    Create or refresh the local user for `identity` in its own transaction,
    committed before the request does any work. A request that fails later
    still leaves the caller visible to everyone else.
    """
    manager = request.app.state.database_manager

    async def ensure():
        async with manager.session() as conn:
            async with conn.begin():
                await user_service.ensure(
                    user_id=identity.user_id,
                    user_name=identity.user_name,
                    conn=conn,
                    log=log,
                )

    try:
        await ensure()
    except user_service.UserExistsError:
        # Lost the race to create them; the row exists now.
        await log.ainfo("identity.mirror.raced", user_id=identity.user_id)
        await ensure()


async def handle_caller(request: Request, log: LoggerDependency) -> IdentityData:
    """
    Resolve the caller from the `Authorization: Bearer` header and make sure
    they exist locally. Raises a 401 when there is no token; decode and
    expiry failures are turned into 401s by the exception handlers.
    """

    log = log.bind(client=request.client)

    authorization = request.headers.get("Authorization")

    if authorization is None:
        await log.adebug("identity.no_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required"
        )

    scheme, _, access_token = authorization.partition(" ")

    if scheme != "Bearer" or not access_token:
        raise KeyDecodeError("Malformed authorization header")

    public_key = request.app.state.public_key

    if public_key is None:
        await log.aerror("identity.no_public_key")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity verification is not configured",
        )

    identity = decode_access_token(
        encrypted_access_token=access_token,
        public_key=public_key,
        key_pair_type=request.app.state.settings.identity_key_pair_type,
    )

    await mirror_caller(identity=identity, request=request, log=log)

    await log.adebug("identity.resolved", user_id=identity.user_id)

    return identity


CallerDependency = Annotated[IdentityData, Depends(handle_caller)]
