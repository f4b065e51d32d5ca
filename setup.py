from setuptools import setup

setup(
    name='atmfjstc-box-tree',
    version='1.0.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=['atmfjstc.lib.box_tree', 'atmfjstc.lib.box_tree.boxes'],

    install_requires=[
        'termcolor>=1',
    ],
    extras_require={
        'test': ['pytest'],
    },

    entry_points={
        'console_scripts': [
            'box-tree-dump = atmfjstc.lib.box_tree.dump:main',
        ],
    },

    zip_safe=True,

    description="Extensible parser for ISO base media format (MP4, HEIF, JUMBF etc.) box trees",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Multimedia",
        "Typing :: Typed",
    ],
    python_requires='>=3.7',
)
