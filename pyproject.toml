[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gadgetmoded"
version = "0.1.0"
description = "Building blocks for a USB gadget mode daemon: mode definitions, storage, signal and network helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["usb", "gadget", "g_ether", "udhcpd", "mass-storage", "linux"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Universal Serial Bus (USB) :: Miscellaneous",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gadgetmoded"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
