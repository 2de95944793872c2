"""cmsctl — content schema governance: typed fields, pluggable rules, versioned publishing."""

__version__ = "0.1.0"
