"""
Client-side half of the todo app: an HTTP client for the task API, the task
state store that views read from, and a geocoding cache for the map view.
"""
