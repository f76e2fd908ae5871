from setuptools import find_namespace_packages, setup

with open('requirements.txt', 'r') as f:
    requirements = f.readlines()

setup(
    name='elasticity_and_coarse_graining',
    version='0.0.1',
    packages=find_namespace_packages(where='src',
                                     include=['elasticity_and_coarse_graining',
                                              'elasticity_and_coarse_graining.*']),
    package_dir={'': 'src'},
    python_requires='>=3.10',
    install_requires=requirements,
    extras_require={
        'test': ['pytest', 'pytest-mock'],
    },
    entry_points={
        'console_scripts': [
            'analyze-stress-strain=elasticity_and_coarse_graining.analyze_stress_strain:main',
            'fit-cg-potentials=elasticity_and_coarse_graining.fit_coarse_grained_potentials:main',
        ],
    }
)
