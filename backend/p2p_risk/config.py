from pydantic_settings import BaseSettings

from p2p_risk.models.segment import RecoveryRateBounds


class Settings(BaseSettings):
    # Reported recovery rate on charged-off balances: 9.5% +/- 2.5%
    RECOVERY_RATE_LOW: float = 0.07
    RECOVERY_RATE_MID: float = 0.095
    RECOVERY_RATE_HIGH: float = 0.12
    MISMATCH_THRESHOLD: int = 0
    MAX_ERROR_EXAMPLES: int = 10
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def recovery_rate_bounds(self) -> RecoveryRateBounds:
        return RecoveryRateBounds(
            low=self.RECOVERY_RATE_LOW,
            mid=self.RECOVERY_RATE_MID,
            high=self.RECOVERY_RATE_HIGH,
        )


settings = Settings()
