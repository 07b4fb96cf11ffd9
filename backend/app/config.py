from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "", "case_sensitive": False}

    # App
    environment: str = "development"
    debug: bool = True
    app_name: str = "Power Grid Tycoon"
    log_json: bool = False
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Simulation
    scenario_path: str | None = None
    tick_interval_ms: int = 500
    max_sessions: int = 64
    # One week of one-minute ticks
    max_horizon_ticks: int = 10080

    @property
    def tick_interval_s(self) -> float:
        return self.tick_interval_ms / 1000.0


settings = Settings()
