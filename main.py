from generic_avatar.config import config
from generic_avatar.main import app


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(app, host=config.app.host, port=config.app.port, log_level=config.app.log_level.lower())
