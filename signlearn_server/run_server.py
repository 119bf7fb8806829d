# this file is a wrapper to run the server with uvicorn
import uvicorn

from signlearn_server.core.config.general_config import settings
from signlearn_server.main import app as fastapi_app


if __name__ == "__main__":
    uvicorn.run(fastapi_app, host=settings.HOST, port=settings.PORT)
