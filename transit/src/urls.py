"""
API Endpoint URL Constants

This module defines the URL paths served by the transit API. Rider screens
live at the root, administrator screens under `/admin`.
"""

# -------------------------------
# Account
# -------------------------------
URL_ACCOUNT = "/account"
URL_ACCOUNT_TOKEN = "/account/token"
URL_ACCOUNT_SESSION = "/account/session"

# -------------------------------
# Rider screens
# -------------------------------
URL_HOME = "/home"
URL_MAP = "/map"
URL_MAP_MARKER = "/map/marker"
URL_AGENCIES = "/agencies"
URL_AGENCY_LOGO = "/agencies/logo"
URL_SEARCH = "/search"

# -------------------------------
# Admin screens
# -------------------------------
URL_ADMIN = "/admin"
URL_ADMIN_AGENCY = "/admin/agency"
URL_ADMIN_AGENCY_TOGGLE = "/admin/agency/toggle"
URL_ADMIN_AGENCY_LOGO = "/admin/agency/logo"
URL_ADMIN_BUS_LINE = "/admin/bus_line"
URL_ADMIN_BUS_LINE_TOGGLE = "/admin/bus_line/toggle"
URL_ADMIN_INTERCITY_ROUTE = "/admin/intercity_route"
URL_ADMIN_INTERCITY_ROUTE_TOGGLE = "/admin/intercity_route/toggle"
URL_ADMIN_CITY = "/admin/city"
