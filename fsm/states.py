"""Loading / presentation states."""

# Load lifecycle
IDLE    = "idle"
LOADING = "loading"
READY   = "ready"
ERROR   = "error"

# What the grid shows
VIEW_CURATED = "curated"
VIEW_SEARCH  = "search"

# A newer request may supersede one still loading
TRANSITIONS = {
    IDLE:    {LOADING},
    LOADING: {LOADING, READY, ERROR},
    READY:   {LOADING},
    ERROR:   {LOADING},
}
