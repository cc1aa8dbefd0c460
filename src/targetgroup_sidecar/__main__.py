from targetgroup_sidecar.cli import main

main()
