from setuptools import setup, find_packages

setup(
    name="gke_prom_metrics",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "examples"]),
    python_requires=">=3.8",
    install_requires=["python-dotenv>=1.0"],
    extras_require={"test": ["pytest>=7"]},
    description="In-process Prometheus-style metrics registry with an HTTP exposition endpoint for GKE workloads",
)
