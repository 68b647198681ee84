"""Weather lookup through the open-meteo forecast API."""

import httpx
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chanswer.ai.tools.base import ChatTool, ToolContext, ToolResult
from chanswer.utils.logger import logger


class WeatherSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WEATHER_", case_sensitive=False, extra="ignore"
    )

    base_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Forecast endpoint",
    )
    timeout_seconds: float = Field(default=10.0, gt=0)


class GetWeatherArgs(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class GetWeatherTool(ChatTool):
    name = "getWeather"
    description = "Get the current weather at a location"
    args_model = GetWeatherArgs
    failure_message = "Failed to fetch weather data"

    def __init__(
        self,
        settings: WeatherSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or WeatherSettings()
        self._transport = transport

    async def run(self, args: GetWeatherArgs, context: ToolContext) -> ToolResult:
        params = {
            "latitude": args.latitude,
            "longitude": args.longitude,
            "current": "temperature_2m",
            "hourly": "temperature_2m",
            "daily": "sunrise,sunset",
            "timezone": "auto",
        }
        async with httpx.AsyncClient(
            timeout=self.settings.timeout_seconds, transport=self._transport
        ) as client:
            response = await client.get(self.settings.base_url, params=params)
            response.raise_for_status()
            weather = response.json()

        logger.info(
            "[TOOL] Weather fetched",
            latitude=args.latitude,
            longitude=args.longitude,
        )
        return ToolResult.ok(**weather)
