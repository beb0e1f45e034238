import uvicorn

from kmeans_api.src.app import create_app
from kmeans_api.src.config import config

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "kmeans_api.src.main:app",
        host="0.0.0.0",
        port=config.app.server_port,
        reload=True,
    )
