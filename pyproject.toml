[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "polarisctl"
version = "0.1.0"
description = "Control and estimation algorithms for mobile robots: PID, digital filters, Kalman filtering, quaternion EKF attitude estimation and chassis power limiting."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["robotics", "pid", "kalman", "ekf", "quaternion", "attitude", "filter", "control"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["polarisctl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
