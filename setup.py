#!/usr/bin/env python3
"""Setup script for raju - Plan/Execute/Reflect agent with experience memory."""

import subprocess
from pathlib import Path
from setuptools import find_packages, setup
from setuptools.command.build_py import build_py
from setuptools.command.install import install


def get_git_commit():
    """Get the current git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            cwd=Path(__file__).parent
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return "unknown"


def stamp_git_commit():
    """Write the current commit hash into raju/_version.py."""
    version_file = Path(__file__).parent / "raju" / "_version.py"
    if not version_file.exists():
        return

    git_commit = get_git_commit()
    lines = version_file.read_text(encoding="utf-8").split('\n')
    stamped = [
        f'RAJU_GIT_COMMIT = "{git_commit}"' if line.startswith('RAJU_GIT_COMMIT') else line
        for line in lines
    ]
    version_file.write_text('\n'.join(stamped), encoding="utf-8")
    print(f"Stamped raju/_version.py with git commit: {git_commit}")


class BuildPyCommand(build_py):
    def run(self):
        stamp_git_commit()
        super().run()


class InstallCommand(install):
    def run(self):
        stamp_git_commit()
        super().run()


# Read the version without importing the package
version_ns = {}
version_file = Path(__file__).parent / "raju" / "_version.py"
if version_file.exists():
    exec(version_file.read_text(encoding="utf-8"), version_ns)
RAJU_VERSION = version_ns.get("RAJU_VERSION", "0.0.0")

requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="raju-agent",
    version=RAJU_VERSION,
    description="raju - task agent with plan/execute/reflect reasoning and experience memory",
    author="Raju Team",
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=4.0.0',
        ],
    },
    packages=find_packages(
        exclude=["tests", "tests.*", "build", "build.*"]
    ),
    entry_points={
        "console_scripts": [
            "raju=raju.main:main",
        ],
    },
    cmdclass={
        'build_py': BuildPyCommand,
        'install': InstallCommand,
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="ai agent llm reasoning memory openai anthropic gemini gguf",
)
