"""Fake Roku library."""

from setuptools import setup

setup(name="fake_roku",
      version="1.0.0",
      description="Emulate Roku ECP players on the local network and record "
                  "their remote commands as states",
      author="fake_roku contributors",
      license="MIT",
      packages=["fake_roku"],
      python_requires=">=3.10",
      install_requires=["aiohttp>3", "shortuuid", "PyYAML"],
      extras_require={
          "test": ["pytest", "pytest-asyncio"],
      },
      entry_points={
          "console_scripts": ["fake-roku=fake_roku.__main__:main"],
      },
      zip_safe=True)
