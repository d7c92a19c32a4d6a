import os


class Settings:
    def __init__(self) -> None:
        # local MongoDB by default
        self.MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://127.0.0.1:27017/chatdb")
        self.MONGODB_DB: str = os.getenv("MONGODB_DB", "chatdb")
        self.MONGODB_COLLECTION: str = os.getenv("MONGODB_COLLECTION", "messages")
        self.MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "30000"))
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "3000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
