"""
cep_weather.api.routers

HTTP routers shared by (or specific to) the two services.
"""

# Package marker.
