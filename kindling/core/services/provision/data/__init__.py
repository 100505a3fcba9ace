"""L0 Data — static locations and download sources."""
