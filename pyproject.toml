[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "soundy"
version = "0.2.0"
description = "SoundFont-driven MIDI sequencer and synthesizer that renders tracks to interleaved 16-bit PCM samples"
requires-python = ">=3.10"
keywords = ["midi", "soundfont", "sf2", "synthesizer", "sequencer", "audio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "mido",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["soundy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
