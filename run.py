from simctl_bridge.main import app

if __name__ == "__main__":
    import uvicorn
    from simctl_bridge.config.settings import settings
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
