from setuptools import find_packages, setup

setup(
    name="ghost-post-refresh",
    version="0.1.0",
    description="Copy Ghost post excerpts into meta descriptions, make posts public and notify Google indexing",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "requests>=2.32.0",
        "PyJWT>=2.8.0",
    ],
    extras_require={
        "dev": ["pytest>=8.2.0"],
    },
    entry_points={
        "console_scripts": [
            "ghost-post-refresh=ghost_refresh.cli:main",
        ]
    },
)
