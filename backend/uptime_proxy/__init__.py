"""Caching UptimeRobot proxy for public status dashboards."""
