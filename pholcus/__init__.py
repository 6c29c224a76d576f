"""Rule-driven web crawler library: spiders, priority scheduling, batched output and task packing."""

__version__ = "0.4.8"