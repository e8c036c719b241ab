import os

class Settings:
    """Application settings"""
    
    # simctl invocation
    XCRUN_PATH: str = os.getenv("SIMCTL_BRIDGE_XCRUN", "xcrun")
    SIMCTL_CHILD_ENV_PREFIX: str = "SIMCTL_CHILD_"
    SIMULATOR_SDK: str = "iphonesimulator"
    
    # Launch / pid polling (seconds)
    PID_POLL_INTERVAL: float = 0.5
    LAUNCH_PID_TIMEOUT: float = 10.0
    
    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Logging
    LOG_LEVEL: str = os.getenv("SIMCTL_BRIDGE_LOG_LEVEL", "INFO")

settings = Settings()
