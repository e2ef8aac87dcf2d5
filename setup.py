from setuptools import setup, find_packages


with open("requirements.txt") as f:
    install_reqs = f.read().strip().split("\n")

# Filter out comments/hashes
reqs = []
for req in install_reqs:
    if req.startswith("#") or req.startswith("    --hash="):
        continue
    reqs.append(str(req).rstrip(" \\"))


with open("README.md", "r") as fh:
    long_description = fh.read()


setup(
    name="bitcoin_wire",
    version="0.1.0",
    author="Andreas Griffin",
    author_email="andreasgriffin@proton.me",
    description="Decoder for the Bitcoin peer-to-peer wire protocol.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["bitcoin_wire", "bitcoin_wire.*"]),
    install_requires=reqs,
    extras_require={
        "test": ["pytest>=7.4", "pytest-qt>=4.2"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet",
        "Topic :: System :: Networking :: Monitoring",
    ],
    python_requires=">=3.10,<4.0",
    entry_points={
        "console_scripts": [
            "bitcoin_wire=bitcoin_wire.p2p.__main__:main",
        ],
    },
)
