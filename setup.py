import setuptools

setuptools.setup(
  name="raveler-export",
  version="1.0.0",
  description="Convert Raveler superpixel exports into compressed body label slabs.",
  python_requires=">=3.8",
  packages=["raveler", "raveler_cli"],
  install_requires=[
    "numpy",
    "fastremap",
    "click",
    "Pillow",
    "lz4",
    "requests",
    "cloud-files",
    "tqdm",
  ],
  extras_require={
    "test": [
      "pytest",
    ],
  },
  entry_points={
    "console_scripts": [
      "raveler-export=raveler_cli:main"
    ],
  },
)
