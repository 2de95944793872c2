"""Plugins shipped with cmsctl and registered before discovery."""
