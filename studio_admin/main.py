import uvicorn

from studio_admin.core.app_factory import create_app
from studio_admin.core.config import settings

app = create_app()


if __name__ == "__main__":
    # One worker: limiter state is per process.
    # request.client.host is rewritten only for connections from forwarded_allow_ips
    uvicorn.run(
        "studio_admin.main:app",
        host=settings.app.host,
        port=settings.app.port,
        proxy_headers=True,
        forwarded_allow_ips=settings.app.forwarded_allow_ips,
    )
