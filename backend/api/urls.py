"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api import views

urlpatterns = [
    path("weather/current", views.CurrentWeatherView.as_view(), name="weather-current"),
    path("weather/forecast", views.ForecastView.as_view(), name="weather-forecast"),
    path("weather/alerts", views.WeatherAlertsView.as_view(), name="weather-alerts"),
    path("weather/meteostat/monthly", views.MeteostatMonthlyView.as_view(), name="weather-monthly"),
    path("disasters/earthquakes", views.EarthquakesView.as_view(), name="disasters-earthquakes"),
    path("disasters/wildfires", views.WildfiresView.as_view(), name="disasters-wildfires"),
    path("disasters/unrest", views.CivilUnrestView.as_view(), name="disasters-unrest"),
    path("disasters/severe-weather", views.SevereWeatherView.as_view(), name="disasters-severe-weather"),
    path("disasters/combined", views.CombinedAlertsView.as_view(), name="disasters-combined"),
    path("disasters/active", views.ActiveNearView.as_view(), name="disasters-active"),
    path("disasters/stats", views.DisasterStatsView.as_view(), name="disasters-stats"),
    path("disasters/traffic", views.TrafficIncidentView.as_view(), name="disasters-traffic"),
    path("disasters/fires", views.FireIncidentView.as_view(), name="disasters-fires"),
    path("health/providers", views.ProviderHealthView.as_view(), name="health-providers"),
    path("admin/health", views.AdminHealthView.as_view(), name="admin-health"),
]
