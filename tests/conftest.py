import matplotlib

# No display on CI machines
matplotlib.use("Agg")
