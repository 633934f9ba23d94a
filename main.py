# -*- coding: utf-8 -*-
"""Testing Working Document!

Just a workspace document to exercise the library end to end on synthetic data.
"""

import os

from spatialio import (
    DataType,
    create_sample_raster,
    create_sample_vector,
    list_layers,
    plot_histogram,
    plot_raster,
    plot_vector,
    raster_info,
    read_raster,
    read_vector,
    save_figure,
    setup_logging,
    summarize,
    write_raster,
    write_vector,
)


def run_example(output_dir="output"):
    """Run Example."""
    setup_logging()
    os.makedirs(output_dir, exist_ok=True)

    print("Creating sample data...")
    world = create_sample_vector()
    image = create_sample_raster(bands=4)
    print(world)
    print(image)

    print("\nWriting vector formats...")
    gpkg_path = os.path.join(output_dir, "world.gpkg")
    write_vector(world, gpkg_path, layer="world", overwrite=True)
    write_vector(world, os.path.join(output_dir, "world.geojson"), overwrite=True)
    write_vector(world, os.path.join(output_dir, "world.shp"), overwrite=True)
    write_vector(
        world,
        os.path.join(output_dir, "world.csv"),
        overwrite=True,
        options=["GEOMETRY=AS_WKT"],
    )

    print("\nReading back...")
    print(f"Layers in {gpkg_path}: {list_layers(gpkg_path)}")
    world_back = read_vector(gpkg_path)
    print(summarize(world_back))
    csv_back = read_vector(os.path.join(output_dir, "world.csv"), options={"GEOM_POSSIBLE_NAMES": "WKT"})
    print(f"CSV features: {len(csv_back)}, geometry types: {csv_back.geometry_types}")

    print("\nWriting rasters...")
    tif_path = os.path.join(output_dir, "image.tif")
    write_raster(image, tif_path, datatype=DataType.FLT4S, overwrite=True)
    write_raster(image.band(1), os.path.join(output_dir, "band1.asc"), overwrite=True)
    print(raster_info(tif_path))
    red = read_raster(tif_path, band=3)
    print(red)

    print("\nRendering...")
    save_figure(plot_vector(world_back, column="pop"), os.path.join(output_dir, "1_world_pop.png"), overwrite=True)
    save_figure(plot_raster(image, rgb_bands=(3, 2, 1)), os.path.join(output_dir, "2_image_rgb.png"), overwrite=True)
    save_figure(
        plot_histogram(world_back, attribute="area_km2", by_class="continent"),
        os.path.join(output_dir, "3_area_histogram.png"),
        overwrite=True,
    )
    print(f"\nAll outputs saved to: {output_dir}")


if __name__ == "__main__":
    run_example()
